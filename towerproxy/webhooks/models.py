"""Push notification and delivery models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

LATEST_TAG = "latest"


class PushData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tag: str = ""

    @field_validator("tag", mode="before")
    @classmethod
    def _null_tag(cls, value: Any) -> Any:
        # JSON null leaves the field at its empty value
        return "" if value is None else value


class Repository(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    repo_name: str = ""

    @field_validator("name", "repo_name", mode="before")
    @classmethod
    def _null_name(cls, value: Any) -> Any:
        return "" if value is None else value


class PushNotification(BaseModel):
    """The part of a registry push webhook that the filter looks at."""

    model_config = ConfigDict(extra="ignore")

    push_data: PushData = Field(default_factory=PushData)
    repository: Repository = Field(default_factory=Repository)

    @model_validator(mode="before")
    @classmethod
    def _null_document(cls, data: Any) -> Any:
        return {} if data is None else data

    @field_validator("push_data", "repository", mode="before")
    @classmethod
    def _null_section(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def tag(self) -> str:
        return self.push_data.tag

    @property
    def repository_name(self) -> str:
        return self.repository.name or self.repository.repo_name


@dataclass(frozen=True)
class ForwardDecision:
    forward: bool
    tag: str = ""
    repository_name: str = ""


@dataclass(frozen=True)
class OutboundDelivery:
    """One deferred call to Watchtower, captured at request time."""

    webhook_id: str
    body: bytes
    headers: tuple[tuple[str, str], ...] = ()
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
