"""
Request payloads — MODULE_REQ bodies, selected by their `handler` field.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator

SEND_MESSAGE = "send-message"
SEND_MULTICAST_MESSAGE = "send-multicast-message"

# Firebase rejects multicast messages with more tokens than this
MAX_MULTICAST_TOKENS = 500


class HandlerSelector(BaseModel):
    handler: Optional[str] = None


class NotificationFields(BaseModel):
    title: str = ""
    body: str = ""
    data: Optional[dict[str, str]] = None

    @field_validator("title", "body", mode="before")
    @classmethod
    def _nil_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class SendRequest(NotificationFields):
    """{handler: "send-message", token, title, body, data}"""
    token: str


class MulticastSendRequest(NotificationFields):
    """{handler: "send-multicast-message", tokens, title, body, data}"""
    tokens: list[str] = Field(min_length=1, max_length=MAX_MULTICAST_TOKENS)


class MissingHandler(BaseModel):
    pass


class UnknownHandler(BaseModel):
    name: str


class SingleSend(BaseModel):
    request: SendRequest


class MulticastSend(BaseModel):
    request: MulticastSendRequest


Request = Union[MissingHandler, SingleSend, MulticastSend, UnknownHandler]
