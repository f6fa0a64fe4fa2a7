from __future__ import annotations

import secrets
import string
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

METADATA_SCHEMA_VERSION = "1.0"
CUSTOM_DATA_KEY = "genogram"

GRID_SIZE = 20.0
DEFAULT_DROP = 40.0
MIN_DROP = 20.0

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id(prefix: str) -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}_{suffix}"


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class ViewWindow:
    """Visible rectangle of model space."""

    x: float
    y: float
    width: float
    height: float


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    NON_BINARY = "non_binary"
    OTHER = "other"


class SexualOrientation(str, Enum):
    STRAIGHT = "straight"
    GAY = "gay"
    LESBIAN = "lesbian"
    BISEXUAL = "bisexual"
    OTHER = "other"


class RelationshipFamily(str, Enum):
    COUPLE = "couple"
    PARENT_CHILD = "parent_child"
    TWIN = "twin"


class RelationshipType(str, Enum):
    MARRIED = "married"
    LEGAL_SEPARATION = "legal_separation"
    DIVORCED = "divorced"
    DIVORCED_REMARRIED = "divorced_remarried"
    SEPARATION_IN_FACT = "separation_in_fact"
    ENGAGEMENT = "engagement"
    SHORT_TERM = "short_term"
    TEMPORARY = "temporary"
    OTHER_UNKNOWN = "other_unknown"
    BIOLOGICAL_CHILD = "biological_child"
    FOSTER_CHILD = "foster_child"
    ADOPTED_CHILD = "adopted_child"
    FRATERNAL_TWINS = "fraternal_twins"
    IDENTICAL_TWINS = "identical_twins"

    @property
    def family(self) -> RelationshipFamily:
        return RELATIONSHIP_FAMILIES[self]

    @property
    def label(self) -> str:
        return RELATIONSHIP_LABELS[self]


RELATIONSHIP_LABELS: Dict[RelationshipType, str] = {
    RelationshipType.MARRIED: "Married",
    RelationshipType.LEGAL_SEPARATION: "Legal Separation",
    RelationshipType.DIVORCED: "Divorced",
    RelationshipType.DIVORCED_REMARRIED: "Divorced then Remarried",
    RelationshipType.SEPARATION_IN_FACT: "Separation in Fact",
    RelationshipType.ENGAGEMENT: "Engagement / Long-Term",
    RelationshipType.SHORT_TERM: "Short-Term Relationship",
    RelationshipType.TEMPORARY: "Temporary / One-Night Stand",
    RelationshipType.OTHER_UNKNOWN: "Other / Unknown",
    RelationshipType.BIOLOGICAL_CHILD: "Biological Child",
    RelationshipType.FOSTER_CHILD: "Foster Child",
    RelationshipType.ADOPTED_CHILD: "Adopted Child",
    RelationshipType.FRATERNAL_TWINS: "Fraternal Twins",
    RelationshipType.IDENTICAL_TWINS: "Identical Twins",
}

COUPLE_TYPES: List[RelationshipType] = [
    RelationshipType.MARRIED,
    RelationshipType.LEGAL_SEPARATION,
    RelationshipType.DIVORCED,
    RelationshipType.DIVORCED_REMARRIED,
    RelationshipType.SEPARATION_IN_FACT,
    RelationshipType.ENGAGEMENT,
    RelationshipType.SHORT_TERM,
    RelationshipType.TEMPORARY,
    RelationshipType.OTHER_UNKNOWN,
]
CHILD_TYPES: List[RelationshipType] = [
    RelationshipType.BIOLOGICAL_CHILD,
    RelationshipType.FOSTER_CHILD,
    RelationshipType.ADOPTED_CHILD,
]
TWIN_TYPES: List[RelationshipType] = [
    RelationshipType.FRATERNAL_TWINS,
    RelationshipType.IDENTICAL_TWINS,
]

RELATIONSHIP_FAMILIES: Dict[RelationshipType, RelationshipFamily] = {
    **{code: RelationshipFamily.COUPLE for code in COUPLE_TYPES},
    **{code: RelationshipFamily.PARENT_CHILD for code in CHILD_TYPES},
    **{code: RelationshipFamily.TWIN for code in TWIN_TYPES},
}

DEFAULT_COUPLE_TYPE = RelationshipType.MARRIED


class _DocumentModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )


class CalendarDate(_DocumentModel):
    # Parts are stored exactly as given, without coercion or calendar checks.
    day: Any = None
    month: Any = None
    year: Any = None


class Person(_DocumentModel):
    id: str = Field(default_factory=lambda: generate_id("p"), min_length=1)
    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""
    hyphenated_last_name: str = ""
    former_last_names: List[str] = Field(default_factory=list)
    birth_date: Optional[CalendarDate] = None
    alive: bool = True
    death_date: Optional[CalendarDate] = None
    gender: Gender = Gender.FEMALE
    sexual_orientation: SexualOrientation = SexualOrientation.STRAIGHT
    notes: str = ""
    position: Point = Point(0.0, 0.0)

    @field_validator("former_last_names", mode="before")
    @classmethod
    def ensure_name_list(cls, value: object) -> object:
        return value if value is not None else []

    def display_name(self) -> str:
        last = self.hyphenated_last_name or self.last_name
        parts = [self.first_name, self.middle_name, last]
        return " ".join(part for part in parts if part) or self.id


class Relationship(_DocumentModel):
    id: str = Field(default_factory=lambda: generate_id("r"), min_length=1)
    type: RelationshipType
    people: List[str]
    meta: Dict[str, Any] = Field(default_factory=lambda: {"drop": DEFAULT_DROP})

    @field_validator("people", mode="after")
    @classmethod
    def ensure_pair(cls, people: List[str]) -> List[str]:
        if len(people) != 2:
            msg = f"Relationship must reference exactly two people, got {len(people)}"
            raise ValueError(msg)
        return people

    @field_validator("meta", mode="after")
    @classmethod
    def ensure_drop(cls, meta: Dict[str, Any]) -> Dict[str, Any]:
        drop = meta.get("drop")
        if drop is None:
            return {**meta, "drop": DEFAULT_DROP}
        if isinstance(drop, bool) or not isinstance(drop, (int, float)):
            msg = f"Relationship meta.drop must be a number, got {drop!r}"
            raise ValueError(msg)
        return meta

    @property
    def family(self) -> RelationshipFamily:
        return self.type.family

    @property
    def drop(self) -> float:
        return float(self.meta["drop"])

    def set_drop(self, value: float) -> None:
        self.meta["drop"] = value

    def involves(self, person_id: str) -> bool:
        return person_id in self.people


class GenogramDocument(_DocumentModel):
    people: List[Person] = Field(default_factory=list)
    relationships: List[Relationship] = Field(default_factory=list)

    @field_validator("people", "relationships", mode="before")
    @classmethod
    def ensure_list(cls, value: object) -> object:
        return value if value is not None else []


@dataclass(frozen=True)
class ExcalidrawDocument:
    elements: List[dict]
    app_state: dict
    files: dict

    def to_dict(self) -> dict:
        return {
            "type": "excalidraw",
            "version": 2,
            "source": "genogram-editor",
            "elements": self.elements,
            "appState": self.app_state,
            "files": self.files,
        }


@dataclass(frozen=True)
class SelectionState:
    people: FrozenSet[str] = frozenset()
    relationship: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.people and self.relationship is None
