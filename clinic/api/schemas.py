from datetime import date, datetime

from pydantic import BaseModel, Field

from clinic.domain.entities.appointment import Appointment, AppointmentStatus
from clinic.domain.entities.blog_post import BlogPost, BlogStatus
from clinic.domain.entities.session import AdminUser, SessionState


class AdminUserSchema(BaseModel):
    id: str
    email: str
    name: str
    avatar_url: str | None = None

    @staticmethod
    def from_entity(user: AdminUser) -> "AdminUserSchema":
        return AdminUserSchema(id=user.id, email=user.email, name=user.name, avatar_url=user.avatar_url)


class SessionSchema(BaseModel):
    is_authenticated: bool
    is_loading: bool
    user: AdminUserSchema | None = None

    @staticmethod
    def from_state(state: SessionState) -> "SessionSchema":
        return SessionSchema(
            is_authenticated=state.is_authenticated,
            is_loading=state.is_loading,
            user=AdminUserSchema.from_entity(state.user) if state.user else None,
        )


class LoginRequestSchema(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginResponseSchema(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: AdminUserSchema


class AppointmentSchema(BaseModel):
    id: str
    full_name: str
    email: str
    phone: str
    service: str
    message: str | None = None
    preferred_date: date
    status: AppointmentStatus
    created_at: datetime

    @staticmethod
    def from_entity(a: Appointment) -> "AppointmentSchema":
        return AppointmentSchema(
            id=a.id,
            full_name=a.full_name,
            email=a.email,
            phone=a.phone,
            service=a.service,
            message=a.message,
            preferred_date=a.preferred_date,
            status=a.status,
            created_at=a.created_at,
        )


class AppointmentListSchema(BaseModel):
    search: str
    status: str
    is_loading: bool
    counts: dict[str, int]
    appointments: list[AppointmentSchema]


class StatusUpdateSchema(BaseModel):
    status: AppointmentStatus


class BlogPostSchema(BaseModel):
    id: str
    title: str
    slug: str
    content: str
    status: BlogStatus
    author: str
    created_at: datetime
    updated_at: datetime

    @staticmethod
    def from_entity(p: BlogPost) -> "BlogPostSchema":
        return BlogPostSchema(
            id=p.id,
            title=p.title,
            slug=p.slug,
            content=p.content,
            status=p.status,
            author=p.author,
            created_at=p.created_at,
            updated_at=p.updated_at,
        )


class BlogCreateSchema(BaseModel):
    title: str = Field(min_length=1)
    content: str = ""
    status: BlogStatus = BlogStatus.draft
    author: str = ""


class BlogUpdateSchema(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    content: str | None = None
    status: BlogStatus | None = None
    author: str | None = None
