from functools import lru_cache
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()


class Settings(BaseModel):
    agency_api_url: str = Field(default="http://127.0.0.1:5000/api/public")
    agency_api_key: str = Field(default="")
    agency_timezone: str = Field(default="Europe/Istanbul")
    http_timeout_seconds: float = Field(default=20.0, gt=0)
    http_read_retries: int = Field(default=3, ge=0)
    flow_ttl_minutes: int = Field(default=30, ge=1)
    payment_callback_url: str | None = Field(default=None)


@lru_cache
def get_settings() -> Settings:
    defaults = Settings.model_fields
    return Settings(
        agency_api_url=os.getenv("AGENCY_API_URL", defaults["agency_api_url"].default),
        agency_api_key=os.getenv("AGENCY_API_KEY", defaults["agency_api_key"].default),
        agency_timezone=os.getenv("AGENCY_TIMEZONE", defaults["agency_timezone"].default),
        http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "20")),
        http_read_retries=int(os.getenv("HTTP_READ_RETRIES", "3")),
        flow_ttl_minutes=int(os.getenv("FLOW_TTL_MINUTES", "30")),
        payment_callback_url=os.getenv("PAYMENT_CALLBACK_URL") or None,
    )
