from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from clinic.api.schemas import (
    AdminUserSchema,
    AppointmentListSchema,
    AppointmentSchema,
    BlogCreateSchema,
    BlogPostSchema,
    BlogUpdateSchema,
    LoginRequestSchema,
    LoginResponseSchema,
    SessionSchema,
    StatusUpdateSchema,
)
from clinic.application.exceptions import (
    AuthError,
    InvalidTransitionError,
    NotAuthenticatedError,
    NotFoundError,
    PersistenceError,
)
from clinic.application.use_cases.admin_console import AdminConsole
from clinic.application.use_cases.admin_view_model import (
    AdminViewModel,
    filter_appointments,
    normalize_status_filter,
)
from clinic.application.use_cases.blog_manager import BlogManager
from clinic.domain.entities.session import SessionState
from clinic.wiring.dependencies import get_blog_manager, get_console, get_view_model


router = APIRouter(prefix="/admin")
logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


def _raise_http(e: Exception) -> None:
    logger.warning("Admin request failed", extra={"error": str(e)})
    if isinstance(e, NotAuthenticatedError):
        raise HTTPException(status_code=401, detail=str(e))
    if isinstance(e, InvalidTransitionError):
        raise HTTPException(status_code=409, detail=str(e))
    if isinstance(e, NotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (PersistenceError, AuthError)):
        raise HTTPException(status_code=502, detail=str(e))
    raise e


def _presented_token(credentials: HTTPAuthorizationCredentials | None) -> str | None:
    return credentials.credentials if credentials else None


async def require_operator(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    console: AdminConsole = Depends(get_console),
) -> AdminConsole:
    """Reject callers that do not present the signed-in operator's access token."""
    if not console.session.holds_token(_presented_token(credentials)):
        logger.warning("Admin request without a valid operator token")
        raise HTTPException(
            status_code=401,
            detail="An authenticated admin session is required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return console


@router.get("/session", response_model=SessionSchema)
async def get_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    console: AdminConsole = Depends(get_console),
):
    state = console.session.state
    if not console.session.holds_token(_presented_token(credentials)):
        state = SessionState(is_authenticated=False, is_loading=state.is_loading, user=None)
    return SessionSchema.from_state(state)


@router.post("/login", response_model=LoginResponseSchema)
async def login(req: LoginRequestSchema, console: AdminConsole = Depends(get_console)):
    try:
        user = await console.login(req.email, req.password)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return LoginResponseSchema(
        access_token=console.session.access_token or "",
        user=AdminUserSchema.from_entity(user),
    )


@router.post("/logout", status_code=204)
async def logout(console: AdminConsole = Depends(require_operator)) -> Response:
    try:
        await console.logout()
    except AuthError as e:
        _raise_http(e)
    return Response(status_code=204)


@router.get("/appointments", response_model=AppointmentListSchema)
async def list_appointments(
    search: str | None = Query(None),
    status: str | None = Query(None),
    console: AdminConsole = Depends(require_operator),
    view_model: AdminViewModel = Depends(get_view_model),
):
    try:
        console.session.require_authenticated()
    except NotAuthenticatedError as e:
        _raise_http(e)
    try:
        status_filter = normalize_status_filter(status)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown status filter: {status}")
    search_term = search or ""
    return AppointmentListSchema(
        search=search_term,
        status=status_filter,
        is_loading=view_model.is_loading,
        counts=view_model.counts(),
        appointments=[
            AppointmentSchema.from_entity(a)
            for a in filter_appointments(view_model.snapshot, search_term, status_filter)
        ],
    )


@router.post("/appointments/refresh", response_model=list[AppointmentSchema])
async def refresh_appointments(console: AdminConsole = Depends(require_operator)):
    try:
        snapshot = await console.refresh()
    except (AuthError, PersistenceError) as e:
        _raise_http(e)
    return [AppointmentSchema.from_entity(a) for a in snapshot]


@router.post(
    "/appointments/{appointment_id}/status",
    response_model=AppointmentSchema,
    dependencies=[Depends(require_operator)],
)
async def update_appointment_status(
    appointment_id: str,
    req: StatusUpdateSchema,
    view_model: AdminViewModel = Depends(get_view_model),
):
    try:
        snapshot = await view_model.set_status(appointment_id, req.status)
    except (AuthError, PersistenceError) as e:
        _raise_http(e)
    updated = next((a for a in snapshot if a.id == appointment_id), None)
    if updated is None:
        # the reload no longer contains the row, e.g. deleted concurrently
        raise HTTPException(status_code=404, detail=f"Appointment {appointment_id} not found")
    return AppointmentSchema.from_entity(updated)


@router.get("/blogs", response_model=list[BlogPostSchema], dependencies=[Depends(require_operator)])
async def list_blogs(q: str = Query(""), blogs: BlogManager = Depends(get_blog_manager)):
    try:
        posts = await blogs.list_posts(q)
    except (AuthError, PersistenceError) as e:
        _raise_http(e)
    return [BlogPostSchema.from_entity(p) for p in posts]


@router.post(
    "/blogs",
    response_model=BlogPostSchema,
    status_code=201,
    dependencies=[Depends(require_operator)],
)
async def create_blog(req: BlogCreateSchema, blogs: BlogManager = Depends(get_blog_manager)):
    try:
        post = await blogs.create_post(req.title, req.content, req.status, req.author)
    except (AuthError, PersistenceError) as e:
        _raise_http(e)
    return BlogPostSchema.from_entity(post)


@router.put("/blogs/{post_id}", response_model=BlogPostSchema, dependencies=[Depends(require_operator)])
async def update_blog(post_id: str, req: BlogUpdateSchema, blogs: BlogManager = Depends(get_blog_manager)):
    try:
        post = await blogs.update_post(
            post_id, title=req.title, content=req.content, status=req.status, author=req.author
        )
    except (AuthError, PersistenceError) as e:
        _raise_http(e)
    return BlogPostSchema.from_entity(post)


@router.delete("/blogs/{post_id}", status_code=204, dependencies=[Depends(require_operator)])
async def delete_blog(post_id: str, blogs: BlogManager = Depends(get_blog_manager)) -> Response:
    try:
        await blogs.delete_post(post_id)
    except (AuthError, PersistenceError) as e:
        _raise_http(e)
    return Response(status_code=204)
