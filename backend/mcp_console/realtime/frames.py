"""
Wire frames for the realtime endpoint. Every frame is a JSON object with a "type" field.

Inbound frames are validated with pydantic (discriminated on "type"); anything that does not
validate is a MalformedFrame. Outbound frames are plain dicts built by the helpers below.
"""
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, TypeAdapter, ValidationError

from mcp_console.core.constants import FRAME_CHAT_MESSAGE, FRAME_ERROR, FRAME_PONG
from mcp_console.core.errors import MalformedFrame
from mcp_console.services.storage import ChatMessageRecord


class _Frame(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SubscribeFrame(_Frame):
    type: Literal["subscribe"]
    chat_id: StrictInt = Field(alias="chatId")


class UnsubscribeFrame(_Frame):
    type: Literal["unsubscribe"]
    chat_id: StrictInt = Field(alias="chatId")


class ChatMessageFrame(_Frame):
    type: Literal["chat_message"]
    session_id: StrictInt = Field(alias="sessionId")
    content: str


class PingFrame(_Frame):
    type: Literal["ping"]
    # Echoed back as sent
    timestamp: StrictInt | StrictFloat


InboundFrame = Annotated[
    Union[SubscribeFrame, UnsubscribeFrame, ChatMessageFrame, PingFrame],
    Field(discriminator="type"),
]

_inbound = TypeAdapter(InboundFrame)


def parse_frame(raw: str | bytes | None) -> InboundFrame:
    """Parse one text frame. Raises MalformedFrame for bad JSON, non-objects, unknown types or missing fields."""
    if raw is None:
        raise MalformedFrame("Empty frame")
    try:
        return _inbound.validate_json(raw)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        raise MalformedFrame(f"{first.get('type', 'invalid')}: {first.get('msg', str(e))}") from e


def chat_message_frame(message: ChatMessageRecord) -> dict[str, Any]:
    return {"type": FRAME_CHAT_MESSAGE, "sessionId": message.session_id, "message": message.to_dict()}


def error_frame(message: str) -> dict[str, Any]:
    return {"type": FRAME_ERROR, "message": message}


def pong_frame(timestamp: int | float) -> dict[str, Any]:
    return {"type": FRAME_PONG, "timestamp": timestamp}
