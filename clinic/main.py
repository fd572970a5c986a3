import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from clinic.api.admin import router as admin_router
from clinic.api.public import router as public_router
from clinic.core.config import settings
from clinic.wiring.dependencies import Container, create_container


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("appointment_id", "post_id", "status", "event", "channel", "count", "email", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


def configure_logging(level: str) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)


def create_app(container: Container | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.container = container or create_container(settings)
        await app.state.container.console.mount()
        yield
        await app.state.container.aclose()

    app = FastAPI(title="Clinic Admin", version="1.0.0", lifespan=lifespan)
    app.include_router(admin_router, tags=["admin"])
    app.include_router(public_router, tags=["public"])

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


configure_logging(settings.LOG_LEVEL)

app = create_app()
