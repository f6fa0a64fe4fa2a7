from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Union

from domain.genogram import Genogram
from domain.models import (
    CHILD_TYPES,
    COUPLE_TYPES,
    CalendarDate,
    DEFAULT_DROP,
    Person,
    Relationship,
    RelationshipFamily,
    RelationshipType,
    SelectionState,
)


@dataclass(frozen=True)
class TypeChoice:
    code: RelationshipType
    label: str


def _choices(codes: List[RelationshipType]) -> List[TypeChoice]:
    return [TypeChoice(code=code, label=code.label) for code in codes]


@dataclass(frozen=True)
class EmptyForm:
    message: str = "Select a person or relationship"


@dataclass(frozen=True)
class PersonForm:
    person: Person
    age: Optional[int]


@dataclass(frozen=True)
class RelationshipForm:
    relationship: Relationship
    choices: List[TypeChoice] = field(default_factory=lambda: _choices(list(RelationshipType)))


@dataclass(frozen=True)
class PairForm:
    """Couple chooser for exactly two selected people."""

    genogram: Genogram
    first_id: str
    second_id: str
    choices: List[TypeChoice] = field(default_factory=lambda: _choices(COUPLE_TYPES))

    @property
    def existing(self) -> Optional[Relationship]:
        return self.genogram.relationship_between(
            self.first_id, self.second_id, family=RelationshipFamily.COUPLE
        )

    def apply_pair_choice(
        self, code: RelationshipType | str | None, drop: float = DEFAULT_DROP
    ) -> Optional[Relationship]:
        existing = self.existing
        if code is None:
            if existing is not None:
                self.genogram.remove_relationship(existing.id)
            return None
        relationship_type = RelationshipType(code)
        if relationship_type.family != RelationshipFamily.COUPLE:
            msg = f"{relationship_type.value} is not a couple relationship"
            raise ValueError(msg)
        if existing is not None:
            existing.type = relationship_type
            return existing
        relationship = Relationship(
            type=relationship_type,
            people=[self.first_id, self.second_id],
            meta={"drop": drop},
        )
        self.genogram.add_relationship(relationship)
        return relationship


@dataclass(frozen=True)
class ParentChildForm:
    relationship: Relationship
    child_id: str
    parent_id: Optional[str]
    choices: List[TypeChoice] = field(default_factory=lambda: _choices(CHILD_TYPES))

    def apply_child_type(self, code: RelationshipType | str) -> None:
        relationship_type = RelationshipType(code)
        if relationship_type not in CHILD_TYPES:
            msg = f"{relationship_type.value} is not a parent-child relationship"
            raise ValueError(msg)
        self.relationship.type = relationship_type


DetailForm = Union[EmptyForm, PersonForm, RelationshipForm, PairForm, ParentChildForm]


def build_detail_form(
    genogram: Genogram, selection: SelectionState, today: date | None = None
) -> DetailForm:
    people = sorted(selection.people)
    relationship = (
        genogram.relationships.get(selection.relationship) if selection.relationship else None
    )

    if len(people) == 2 and selection.relationship is None:
        return PairForm(genogram=genogram, first_id=people[0], second_id=people[1])

    if len(people) == 1 and relationship is not None:
        if relationship.family == RelationshipFamily.PARENT_CHILD:
            child_id = people[0]
            parent_id = next((pid for pid in relationship.people if pid != child_id), None)
            return ParentChildForm(
                relationship=relationship, child_id=child_id, parent_id=parent_id
            )

    if len(people) == 1 and selection.relationship is None:
        person = genogram.people.get(people[0])
        if person is not None:
            return PersonForm(person=person, age=compute_age(person.birth_date, today))

    if relationship is not None and not people:
        return RelationshipForm(relationship=relationship)

    return EmptyForm()


def compute_age(birth_date: CalendarDate | None, today: date | None = None) -> Optional[int]:
    if birth_date is None:
        return None
    parts = (birth_date.year, birth_date.month, birth_date.day)
    if not all(_is_number(part) for part in parts):
        return None
    today = today or date.today()
    age = int(today.year - birth_date.year)
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
