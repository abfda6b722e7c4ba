"""
Domain models for the Cosmos DB telemetry demo.

Defines the family document stored in the `items` container and the
transient step results the worker reports. Documents use PascalCase property
names (``LastName`` is the partition key path); Python attributes stay
snake_case and are mapped through aliases.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

_DOCUMENT_CONFIG = ConfigDict(
    alias_generator=to_pascal,
    populate_by_name=True,
    extra="ignore",
)


class Parent(BaseModel):
    model_config = _DOCUMENT_CONFIG

    family_name: Optional[str] = None
    first_name: str


class Pet(BaseModel):
    model_config = _DOCUMENT_CONFIG

    given_name: str


class Child(BaseModel):
    model_config = _DOCUMENT_CONFIG

    family_name: Optional[str] = None
    first_name: str
    gender: str
    grade: int
    pets: List[Pet] = Field(default_factory=list)


class Address(BaseModel):
    model_config = _DOCUMENT_CONFIG

    state: str
    county: str
    city: str


class Family(BaseModel):
    """
    A household document. Identity is the (`id`, `LastName`) pair.

    System properties returned by Cosmos DB (`_rid`, `_etag`, `_ts`...) are
    dropped on parse.
    """

    model_config = _DOCUMENT_CONFIG

    id: str = Field(..., alias="id", description="Document id, unique within a partition.")
    last_name: str = Field(..., description="Partition key value.")
    parents: List[Parent] = Field(default_factory=list)
    children: List[Child] = Field(default_factory=list)
    address: Address
    is_registered: bool = False

    def to_document(self) -> dict:
        """Serialize to the JSON body stored in the container."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def __str__(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class StepOutcome(str, enum.Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class StepResult:
    """Outcome of one workflow step; drives logging and the run report only."""

    name: str
    outcome: StepOutcome
    duration_seconds: float = 0.0
    detail: Optional[str] = None


__all__ = [
    "Address",
    "Child",
    "Family",
    "Parent",
    "Pet",
    "StepOutcome",
    "StepResult",
]
