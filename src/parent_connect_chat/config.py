"""Runtime settings, read from the environment and ``.env``."""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .domain.models import Participant


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    store_backend: Literal["memory", "sqlite"] = Field(default="sqlite", validation_alias="CHAT_STORE_BACKEND")
    store_path: str = Field(default="data/chat_store.sqlite3", validation_alias="CHAT_STORE_PATH")

    current_user_id: str = Field(default="me", validation_alias="CURRENT_USER_ID")
    current_user_name: str = Field(default="You", validation_alias="CURRENT_USER_NAME")
    current_user_avatar: str = Field(default="👩‍👦", validation_alias="CURRENT_USER_AVATAR")

    # Demonstration conversations listed as joined on first run
    bootstrap_conversation_ids: List[str] = Field(
        default_factory=lambda: ["1", "2", "101", "202"],
        validation_alias="BOOTSTRAP_CONVERSATION_IDS",
    )
    placeholder_max_unread: int = Field(default=5, ge=0, validation_alias="PLACEHOLDER_MAX_UNREAD")
    placeholder_max_age_hours: int = Field(default=72, ge=1, validation_alias="PLACEHOLDER_MAX_AGE_HOURS")

    @property
    def current_user(self) -> Participant:
        return Participant(
            id=self.current_user_id,
            name=self.current_user_name,
            avatar=self.current_user_avatar,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
