from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    SUPABASE_URL: str | None = None
    SUPABASE_ANON_KEY: str | None = None
    # empty string keeps the admin session in memory only
    SUPABASE_SESSION_FILE: str = "./data/session.json"
    REMOTE_TIMEOUT_SECONDS: float = 10.0

    APPOINTMENTS_TABLE: str = "appointments"
    BLOGS_TABLE: str = "blogs"
    REALTIME_SCHEMA: str = "public"
    REALTIME_CHANNEL: str = "appointments_changes"

    # seeded operator for the in-memory backend
    DEV_ADMIN_EMAIL: str = "admin@clinic.local"
    DEV_ADMIN_PASSWORD: str = "admin"


settings = Settings()
