"""Data models for the shared charger state document."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Ids generated by the service are integers; documents written by hand may use strings.
UserId = Union[int, str]


class SpotType(str, Enum):
    """Connector type of a charging spot."""

    TESLA = "Tesla"
    CHARGEPOINT = "ChargePoint"


class Preference(str, Enum):
    """Which spot types a user can charge at."""

    TESLA = "Tesla"
    CHARGEPOINT = "ChargePoint"
    BOTH = "Both"


class DocumentModel(BaseModel):
    """Base for persisted models: camelCase on the wire, unknown keys kept."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class User(DocumentModel):
    """A person who can queue for a charger."""

    id: UserId
    name: str
    pref: Preference = Preference.BOTH


class Spot(DocumentModel):
    """A charging spot and who is on it."""

    id: str
    type: SpotType
    label: str = ""
    user_id: Optional[UserId] = None


class QueueEntry(DocumentModel):
    """A pending request for any compatible spot."""

    id: UserId
    user_id: UserId
    position: int


class StateDocument(DocumentModel):
    """The whole persisted state. Read and rewritten in full on every action."""

    users: list[User] = Field(default_factory=list)
    spots: list[Spot] = Field(default_factory=list)
    queue: list[QueueEntry] = Field(default_factory=list)
    last_reset: Optional[datetime] = None

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "StateDocument":
        """Build a state from the raw JSON document."""
        return cls.model_validate(data)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the raw JSON document with wire names."""
        return self.model_dump(mode="json", by_alias=True)


DEFAULT_SPOTS: list[dict[str, str]] = [
    {"id": "tesla-1", "type": "Tesla", "label": "Tesla #1"},
    {"id": "tesla-2", "type": "Tesla", "label": "Tesla #2"},
    {"id": "chargepoint-1", "type": "ChargePoint", "label": "ChargePoint #1"},
    {"id": "chargepoint-2", "type": "ChargePoint", "label": "ChargePoint #2"},
]
