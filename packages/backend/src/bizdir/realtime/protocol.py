"""Wire protocol — inbound command frames and outbound acknowledgements.

Learn: Client → server, one JSON object per frame:
    {"type": "subscribe" | "unsubscribe", "businessId": 42}

Server → client acknowledgements:
    {"type": "success", "message": "..."}
    {"type": "error",   "message": "..."}

Any "type" value decodes, including non-strings; the handler decides
what to do with it. Only undecodable frames raise FrameError.
"""

import json
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

# ─── Command types ───────────────────────────────────────

SUBSCRIBE = "subscribe"
UNSUBSCRIBE = "unsubscribe"

# ─── Acknowledgement messages ────────────────────────────

SUBSCRIBED = "Subscribed successfully"
UNSUBSCRIBED = "Unsubscribed successfully"
BUSINESS_ID_REQUIRED = "Business ID is required"


class FrameError(ValueError):
    """Raised when an inbound frame or one of its fields cannot be decoded."""


class InboundFrame(BaseModel):
    """A decoded client command. Extra keys are ignored.

    Fields are kept as sent; businessId is only checked by the commands
    that use it (see parse_business_id).
    """

    type: Any = None
    business_id: Any = Field(None, alias="businessId")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Acknowledgement(BaseModel):
    """Reply to one client command."""

    type: Literal["success", "error"]
    message: str


_business_id_adapter = TypeAdapter(int)


def decode_frame(raw: Union[str, bytes]) -> InboundFrame:
    """Parse one inbound frame.

    Raises:
        FrameError: not JSON, or not a JSON object.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise FrameError("Malformed frame: invalid JSON")

    if not isinstance(data, dict):
        raise FrameError("Malformed frame: expected a JSON object")

    return InboundFrame.model_validate(data)


def parse_business_id(value: Any) -> Optional[int]:
    """Coerce a raw businessId to int. None means it was not sent.

    Integers and integer strings ("42") are accepted; booleans are not.

    Raises:
        FrameError: anything else.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise FrameError("Business ID must be an integer")
    try:
        return _business_id_adapter.validate_python(value)
    except ValidationError:
        raise FrameError("Business ID must be an integer")


def success_frame(message: str) -> str:
    return Acknowledgement(type="success", message=message).model_dump_json()


def error_frame(message: str) -> str:
    return Acknowledgement(type="error", message=message).model_dump_json()
