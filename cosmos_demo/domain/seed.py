"""
Seed families written by the demo workflow.

Fresh instances are returned on every call so a run can mutate what it reads
without touching the seeds.
"""
from __future__ import annotations

from typing import List

from cosmos_demo.domain.models import Address, Child, Family, Parent, Pet

ANDERSEN_ID = "Andersen.1"
ANDERSEN_LAST_NAME = "Andersen"
WAKEFIELD_ID = "Wakefield.7"
WAKEFIELD_LAST_NAME = "Wakefield"


def andersen_family() -> Family:
    return Family(
        id=ANDERSEN_ID,
        last_name=ANDERSEN_LAST_NAME,
        parents=[Parent(first_name="Thomas"), Parent(first_name="Mary Kay")],
        children=[
            Child(
                first_name="Henriette Thaulow",
                gender="female",
                grade=5,
                pets=[Pet(given_name="Fluffy")],
            )
        ],
        address=Address(state="WA", county="King", city="Seattle"),
        is_registered=False,
    )


def wakefield_family() -> Family:
    return Family(
        id=WAKEFIELD_ID,
        last_name=WAKEFIELD_LAST_NAME,
        parents=[
            Parent(family_name="Wakefield", first_name="Robin"),
            Parent(family_name="Miller", first_name="Ben"),
        ],
        children=[
            Child(
                family_name="Merriam",
                first_name="Jesse",
                gender="female",
                grade=8,
                pets=[Pet(given_name="Goofy"), Pet(given_name="Shadow")],
            ),
            Child(family_name="Miller", first_name="Lisa", gender="female", grade=1),
        ],
        address=Address(state="NY", county="Manhattan", city="NY"),
        is_registered=True,
    )


def seed_families() -> List[Family]:
    """Families the workflow ensures exist, in write order."""
    return [andersen_family(), wakefield_family()]


__all__ = [
    "ANDERSEN_ID",
    "ANDERSEN_LAST_NAME",
    "WAKEFIELD_ID",
    "WAKEFIELD_LAST_NAME",
    "andersen_family",
    "seed_families",
    "wakefield_family",
]
