from __future__ import annotations


class GenogramError(ValueError):
    pass


class DuplicateIdError(GenogramError):
    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"Duplicate {kind} id: {entity_id}")


class DanglingReferenceError(GenogramError):
    def __init__(self, relationship_id: str, person_id: str) -> None:
        self.relationship_id = relationship_id
        self.person_id = person_id
        super().__init__(
            f"Relationship {relationship_id} references unknown person {person_id}"
        )


class MalformedDocumentError(GenogramError):
    pass
