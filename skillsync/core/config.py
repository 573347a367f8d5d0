import os
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv(os.path.join(os.path.dirname(__file__), "../../.env"))


class DataBaseSettings(BaseModel):
    user: str = "skillsync"
    password: str = "skillsync"
    host: str = "localhost"
    port: int = 5432
    db_name: str = "skillsync"
    pool_pre_ping: bool = True

    @property
    def url(self) -> str:
        return f"postgresql+psycopg://{self.user}:{self.password}@{self.host}:{self.port}/{self.db_name}"


class APISettings(BaseModel):
    GEMINI_TOKEN: str | None = None
    GEMINI_MODEL: str | None = "gemini-2.5-flash"


class RateLimitSettings(BaseModel):
    # Gemini free tier: 15 RPM, 1500 RPD
    max_requests_per_minute: int = Field(default=15, ge=1)
    max_requests_per_day: int = Field(default=1500, ge=1)
    min_interval_ms: int = Field(default=4000, ge=0)
    # a grant not recorded or released within this time is dropped
    grant_timeout_sec: float = Field(default=30.0, gt=0)


class SchedulerSettings(BaseModel):
    timezone: str = "UTC"
    day_of_week: str = "mon"
    hour: int = Field(default=6, ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="APP__",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    db: DataBaseSettings = DataBaseSettings()
    api_keys: APISettings = APISettings()
    rate_limit: RateLimitSettings = RateLimitSettings()
    scheduler: SchedulerSettings = SchedulerSettings()


settings: Settings = Settings()
