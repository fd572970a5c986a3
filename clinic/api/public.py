from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from clinic.api.schemas import AppointmentSchema, BlogPostSchema
from clinic.application.dto.booking_request import BookingRequestDTO
from clinic.application.exceptions import NotFoundError, PersistenceError
from clinic.application.use_cases.blog_manager import BlogManager
from clinic.application.use_cases.submit_booking import SubmitBookingUseCase
from clinic.wiring.dependencies import get_blog_manager, get_booking_use_case


router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/appointments", response_model=AppointmentSchema, status_code=201)
async def book_appointment(
    req: BookingRequestDTO,
    uc: SubmitBookingUseCase = Depends(get_booking_use_case),
):
    try:
        appointment = await uc.execute(req)
    except PersistenceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return AppointmentSchema.from_entity(appointment)


@router.get("/blogs", response_model=list[BlogPostSchema])
async def list_published_blogs(blogs: BlogManager = Depends(get_blog_manager)):
    try:
        posts = await blogs.list_published()
    except PersistenceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return [BlogPostSchema.from_entity(p) for p in posts]


@router.get("/blogs/{post_id}", response_model=BlogPostSchema)
async def get_published_blog(post_id: str, blogs: BlogManager = Depends(get_blog_manager)):
    try:
        post = await blogs.get_published(post_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        logger.warning("Blog lookup failed", extra={"post_id": post_id, "error": str(e)})
        raise HTTPException(status_code=502, detail=str(e))
    return BlogPostSchema.from_entity(post)
