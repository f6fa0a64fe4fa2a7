from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from domain.errors import DanglingReferenceError, DuplicateIdError, MalformedDocumentError
from domain.models import (
    GenogramDocument,
    Person,
    Relationship,
    RelationshipFamily,
)


class Genogram:
    """Owns the people and relationships of one chart.

    A relationship never outlives either of its endpoints: removing a person
    cascades to every relationship that references it. Imported documents may
    still carry relationships whose endpoints are missing; those are kept as
    they are and reported by ``dangling_relationships``.
    """

    def __init__(self) -> None:
        self.people: Dict[str, Person] = {}
        self.relationships: Dict[str, Relationship] = {}

    def add_person(self, person: Person) -> None:
        if person.id in self.people:
            raise DuplicateIdError("person", person.id)
        self.people[person.id] = person

    def remove_person(self, person_id: str) -> None:
        self.people.pop(person_id, None)
        for relationship in self.find_relationships_by_person(person_id):
            del self.relationships[relationship.id]

    def add_relationship(self, relationship: Relationship) -> None:
        if relationship.id in self.relationships:
            raise DuplicateIdError("relationship", relationship.id)
        self.relationships[relationship.id] = relationship

    def remove_relationship(self, relationship_id: str) -> None:
        self.relationships.pop(relationship_id, None)

    def get_people(self) -> List[Person]:
        return list(self.people.values())

    def get_relationships(self) -> List[Relationship]:
        return list(self.relationships.values())

    def find_relationships_by_person(self, person_id: str) -> List[Relationship]:
        return [rel for rel in self.relationships.values() if rel.involves(person_id)]

    def relationship_between(
        self,
        first_id: str,
        second_id: str,
        family: RelationshipFamily | None = None,
    ) -> Optional[Relationship]:
        pair = {first_id, second_id}
        for rel in self.relationships.values():
            if set(rel.people) != pair:
                continue
            if family is not None and rel.family != family:
                continue
            return rel
        return None

    def endpoints(self, relationship: Relationship) -> Tuple[Person, Person]:
        resolved: List[Person] = []
        for person_id in relationship.people:
            person = self.people.get(person_id)
            if person is None:
                raise DanglingReferenceError(relationship.id, person_id)
            resolved.append(person)
        first, second = resolved
        return first, second

    def dangling_relationships(self) -> List[Relationship]:
        return [
            rel
            for rel in self.relationships.values()
            if any(person_id not in self.people for person_id in rel.people)
        ]

    def to_snapshot(self) -> Dict[str, Any]:
        # mode="json" rebuilds every nested dict and list, so the snapshot
        # shares no mutable state with the live model.
        document = GenogramDocument(
            people=self.get_people(),
            relationships=self.get_relationships(),
        )
        return document.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_snapshot(cls, payload: Any) -> Genogram:
        if not isinstance(payload, Mapping):
            msg = f"Genogram document must be an object, got {type(payload).__name__}"
            raise MalformedDocumentError(msg)
        if "people" not in payload and "relationships" not in payload:
            msg = "Genogram document must contain 'people' or 'relationships'"
            raise MalformedDocumentError(msg)
        try:
            document = GenogramDocument.model_validate(copy.deepcopy(dict(payload)))
        except ValidationError as exc:
            msg = f"Invalid genogram document: {_describe_errors(exc)}"
            raise MalformedDocumentError(msg) from exc

        genogram = cls()
        for person in document.people:
            genogram.add_person(person)
        for relationship in document.relationships:
            genogram.add_relationship(relationship)
        return genogram


def _describe_errors(exc: ValidationError) -> str:
    parts: List[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)

