from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..models.enums import EnvelopeShape

load_dotenv()


class WidgetConfig(BaseSettings):
    """Configuration for the conversation core and its remote endpoint.

    The envelope shape is fixed at configuration time; the core never
    negotiates it with the endpoint at runtime.
    """

    endpoint_url: str = Field("http://localhost:8080/api/chat/send", alias="CHAT_ENDPOINT_URL")
    envelope: EnvelopeShape = Field(EnvelopeShape.CUSTOM, alias="CHAT_ENVELOPE")
    max_message_length: int = Field(1000, alias="CHAT_MAX_MESSAGE_LENGTH")
    max_history_length: int = Field(100, alias="CHAT_MAX_HISTORY_LENGTH")
    placeholder_text: str = Field("thinking...", alias="CHAT_PLACEHOLDER_TEXT")
    fallback_reply: str = Field(
        "Sorry, I didn't get a response from the bot.", alias="CHAT_FALLBACK_REPLY"
    )
    request_timeout: float = Field(30.0, alias="CHAT_REQUEST_TIMEOUT")
    system_preamble: Optional[str] = Field(default=None, alias="CHAT_SYSTEM_PREAMBLE")

    @field_validator("max_message_length", "max_history_length")
    def validate_positive_length(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Length limits must be positive")
        return value

    @field_validator("request_timeout")
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("CHAT_REQUEST_TIMEOUT must be positive")
        return value

    @field_validator("endpoint_url")
    def validate_endpoint_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("CHAT_ENDPOINT_URL must be an http(s) URL")
        return value

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)


@lru_cache()
def get_widget_config() -> WidgetConfig:
    """Return a cached widget configuration."""

    return WidgetConfig()
