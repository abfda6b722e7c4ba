"""
Domain package for the Cosmos DB telemetry demo.

Exports the family document models, the seed data and step result types.
Keep this package focused on data definitions and validation concerns.
"""

from cosmos_demo.domain.models import (
    Address,
    Child,
    Family,
    Parent,
    Pet,
    StepOutcome,
    StepResult,
)
from cosmos_demo.domain.seed import seed_families

__all__ = [
    "Address",
    "Child",
    "Family",
    "Parent",
    "Pet",
    "StepOutcome",
    "StepResult",
    "seed_families",
]
