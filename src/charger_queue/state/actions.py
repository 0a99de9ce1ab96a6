"""Request envelope: one validated variant per action name."""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..exceptions import InvalidInput
from .models import Preference, QueueEntry, Spot, StateDocument, User, UserId


class Payload(BaseModel):
    """Base for action payloads. Extra keys sent by clients are ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _lookup_key(v: Any) -> Any:
    """Ids only used to look something up; unusable values become a lookup miss."""
    if isinstance(v, bool) or not isinstance(v, (int, str)):
        return None
    return v


class AddUserPayload(Payload):
    name: str = Field(default="", validate_default=True)
    pref: Preference = Preference.BOTH

    @field_validator("name", mode="before")
    @classmethod
    def require_name(cls, v: Any) -> str:
        if v is None:
            v = ""
        if isinstance(v, str):
            v = v.strip()
        if not v:
            raise ValueError("Name required")
        return v

    @field_validator("pref", mode="before")
    @classmethod
    def default_pref(cls, v: Any) -> Any:
        return v or Preference.BOTH


class AddToQueuePayload(Payload):
    user_id: Optional[UserId] = Field(default=None, validate_default=True)

    @field_validator("user_id", mode="after")
    @classmethod
    def require_user_id(cls, v: Optional[UserId]) -> UserId:
        if v is None or v == "" or v == 0:
            raise ValueError("userId required")
        return v


class RemoveFromQueuePayload(Payload):
    user_id: Optional[UserId] = None

    @field_validator("user_id", mode="before")
    @classmethod
    def lookup_user_id(cls, v: Any) -> Any:
        return _lookup_key(v)


class MoveQueuePayload(Payload):
    user_id: Optional[UserId] = None
    delta: int = 0

    @field_validator("user_id", mode="before")
    @classmethod
    def lookup_user_id(cls, v: Any) -> Any:
        return _lookup_key(v)

    @field_validator("delta", mode="before")
    @classmethod
    def default_delta(cls, v: Any) -> Any:
        return 0 if v is None else v


class EndSessionPayload(Payload):
    spot_id: Optional[str] = None

    @field_validator("spot_id", mode="before")
    @classmethod
    def lookup_spot_id(cls, v: Any) -> Any:
        # Spot ids are strings; anything else can never match a spot
        return v if isinstance(v, str) else None


class EmptyPayload(Payload):
    pass


class AddUser(BaseModel):
    action: Literal["addUser"]
    payload: AddUserPayload


class AddToQueue(BaseModel):
    action: Literal["addToQueue"]
    payload: AddToQueuePayload


class RemoveFromQueue(BaseModel):
    action: Literal["removeFromQueue"]
    payload: RemoveFromQueuePayload


class MoveQueue(BaseModel):
    action: Literal["moveQueue"]
    payload: MoveQueuePayload


class EndSession(BaseModel):
    action: Literal["endSession"]
    payload: EndSessionPayload


class FillSpots(BaseModel):
    action: Literal["fillSpots"]
    payload: EmptyPayload


class ClearQueue(BaseModel):
    action: Literal["clearQueue"]
    payload: EmptyPayload


class ResetAll(BaseModel):
    action: Literal["resetAll"]
    payload: EmptyPayload


class WriteAllPayload(StateDocument):
    """A full replacement document; the collections must all be present."""

    users: list[User]
    spots: list[Spot]
    queue: list[QueueEntry]


class WriteAll(BaseModel):
    action: Literal["writeAll"]
    payload: WriteAllPayload


Action = Annotated[
    Union[
        AddUser,
        AddToQueue,
        RemoveFromQueue,
        MoveQueue,
        EndSession,
        FillSpots,
        ClearQueue,
        ResetAll,
        WriteAll,
    ],
    Field(discriminator="action"),
]

ACTION_NAMES = frozenset(
    {
        "addUser",
        "addToQueue",
        "removeFromQueue",
        "moveQueue",
        "endSession",
        "fillSpots",
        "clearQueue",
        "resetAll",
        "writeAll",
    }
)

_action_adapter = TypeAdapter(Action)


def _describe(exc: ValidationError) -> str:
    """Turn the first validation error into a short client-facing message."""
    error = exc.errors()[0]
    if error["type"] == "value_error":
        return str(error["ctx"]["error"])
    location = ".".join(str(part) for part in error["loc"])
    return f"{location}: {error['msg']}"


def parse_action(body: Any) -> Action:
    """
    Validate a raw request body into a typed action.

    Args:
        body: Decoded JSON body, expected shape {"action": str, "payload": dict}

    Returns:
        The action variant matching body["action"]

    Raises:
        InvalidInput: On unknown action names or payloads that fail validation
    """
    if not isinstance(body, dict):
        raise InvalidInput("Request body must be a JSON object")

    name = body.get("action")
    if not isinstance(name, str) or name not in ACTION_NAMES:
        raise InvalidInput("Unknown action")

    payload = body.get("payload") or {}
    try:
        return _action_adapter.validate_python({"action": name, "payload": payload})
    except ValidationError as e:
        raise InvalidInput(_describe(e)) from e
