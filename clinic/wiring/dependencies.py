from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from fastapi import Request

from clinic.application.ports.appointment_repository import AppointmentRepositoryPort
from clinic.application.ports.auth import AuthPort
from clinic.application.ports.blog_repository import BlogRepositoryPort
from clinic.application.ports.change_feed import ChangeFeedPort
from clinic.application.use_cases.admin_console import AdminConsole
from clinic.application.use_cases.admin_view_model import AdminViewModel
from clinic.application.use_cases.appointment_store import AppointmentStore
from clinic.application.use_cases.blog_manager import BlogManager
from clinic.application.use_cases.realtime_bridge import RealtimeBridge
from clinic.application.use_cases.session_manager import SessionManager
from clinic.application.use_cases.submit_booking import SubmitBookingUseCase
from clinic.core.config import Settings, settings as default_settings
from clinic.infrastructure.memory.memory_backend import (
    MemoryAppointmentRepository,
    MemoryAuth,
    MemoryBackend,
    MemoryBlogRepository,
    MemoryChangeFeed,
)
from clinic.infrastructure.supabase.realtime_feed import RealtimeChangeFeed
from clinic.infrastructure.supabase.supabase_auth import SupabaseAuth
from clinic.infrastructure.supabase.supabase_client import SupabaseClient
from clinic.infrastructure.supabase.supabase_tables import SupabaseAppointmentRepository, SupabaseBlogRepository


@dataclass
class Container:
    session: SessionManager
    store: AppointmentStore
    bridge: RealtimeBridge
    view_model: AdminViewModel
    console: AdminConsole
    booking: SubmitBookingUseCase
    blogs: BlogManager
    backend: MemoryBackend | None = None
    closers: list[Callable[[], Awaitable[Any]]] = field(default_factory=list)

    async def aclose(self) -> None:
        await self.console.unmount()
        for close in self.closers:
            await close()


def build_container(
    auth: AuthPort,
    appointments: AppointmentRepositoryPort,
    blogs: BlogRepositoryPort,
    feed: ChangeFeedPort,
    config: Settings | None = None,
) -> Container:
    config = config or default_settings
    session = SessionManager(auth=auth)
    store = AppointmentStore(repository=appointments, session=session)
    bridge = RealtimeBridge(
        feed=feed,
        reload=store.fetch_all,
        channel=config.REALTIME_CHANNEL,
        schema=config.REALTIME_SCHEMA,
        table=config.APPOINTMENTS_TABLE,
    )
    view_model = AdminViewModel(store=store)
    return Container(
        session=session,
        store=store,
        bridge=bridge,
        view_model=view_model,
        console=AdminConsole(session=session, store=store, bridge=bridge, view_model=view_model),
        booking=SubmitBookingUseCase(repository=appointments),
        blogs=BlogManager(repository=blogs, session=session),
    )


def build_memory_container(config: Settings | None = None, backend: MemoryBackend | None = None) -> Container:
    config = config or default_settings
    if backend is None:
        backend = MemoryBackend()
        backend.add_user(config.DEV_ADMIN_EMAIL, config.DEV_ADMIN_PASSWORD)
    container = build_container(
        auth=MemoryAuth(backend),
        appointments=MemoryAppointmentRepository(backend, table=config.APPOINTMENTS_TABLE),
        blogs=MemoryBlogRepository(backend, table=config.BLOGS_TABLE),
        feed=MemoryChangeFeed(backend),
        config=config,
    )
    container.backend = backend
    return container


def build_supabase_container(config: Settings | None = None) -> Container:
    config = config or default_settings
    client = SupabaseClient(
        url=config.SUPABASE_URL or "",
        anon_key=config.SUPABASE_ANON_KEY or "",
        timeout=config.REMOTE_TIMEOUT_SECONDS,
    )
    container = build_container(
        auth=SupabaseAuth(client, session_file=config.SUPABASE_SESSION_FILE or None),
        appointments=SupabaseAppointmentRepository(client, table=config.APPOINTMENTS_TABLE),
        blogs=SupabaseBlogRepository(client, table=config.BLOGS_TABLE),
        feed=RealtimeChangeFeed(client),
        config=config,
    )
    container.closers.append(client.aclose)
    return container


def create_container(config: Settings | None = None) -> Container:
    config = config or default_settings
    logger = logging.getLogger(__name__)
    logger.info("ENV=%s", config.ENV)

    if not config.SUPABASE_URL:
        if config.ENV.lower() in {"dev", "local", "test"}:
            logger.info("Using MemoryBackend (SUPABASE_URL missing, ENV=%s)", config.ENV)
            return build_memory_container(config)
        raise ValueError("SUPABASE_URL is required outside dev/local/test environments.")

    logger.info("Using Supabase backend")
    return build_supabase_container(config)


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_console(request: Request) -> AdminConsole:
    return get_container(request).console


def get_view_model(request: Request) -> AdminViewModel:
    return get_container(request).view_model


def get_booking_use_case(request: Request) -> SubmitBookingUseCase:
    return get_container(request).booking


def get_blog_manager(request: Request) -> BlogManager:
    return get_container(request).blogs
