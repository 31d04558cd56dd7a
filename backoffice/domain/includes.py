"""Related records a meter reading may be returned with.

Clients ask for relations with a small pipe-separated grammar::

    meter:number,status|submeter|entered_by:username

Each relation is an explicit member of ``ReadingInclude`` carrying the
attributes it may expose. Unknown relation tokens and unknown attributes are
dropped rather than rejected.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ReadingInclude(Enum):
    """Relations a meter reading can be joined with."""

    METER = (
        "meter",
        (
            "id",
            "number",
            "status",
            "property_id",
            "utility_type_id",
            "installed_date",
            "last_reading_date",
        ),
    )
    SUBMETER = (
        "submeter",
        ("id", "number", "meter_id", "unit_id", "status", "installed_date"),
    )
    ENTERED_BY = (
        "entered_by",
        ("id", "username", "email", "role"),
    )

    def __init__(self, token: str, attributes: tuple[str, ...]):
        self.token = token
        self.attributes = attributes

    @classmethod
    def from_token(cls, token: str) -> "ReadingInclude | None":
        token = token.strip()
        for member in cls:
            if member.token == token:
                return member
        return _ALIASES.get(token)


_ALIASES = {
    "user": ReadingInclude.ENTERED_BY,
    "enteredBy": ReadingInclude.ENTERED_BY,
}


@dataclass(frozen=True)
class IncludeSpec:
    """A requested relation and the attributes to project from it."""

    relation: ReadingInclude
    attributes: tuple[str, ...]

    def project(self, record: Any) -> dict[str, Any] | None:
        """Return the selected attributes of ``record``, or None when absent."""
        if record is None:
            return None
        return {name: getattr(record, name) for name in self.attributes}


def parse_includes(raw: str | None) -> list[IncludeSpec]:
    """Parse the include grammar into a list of relation specs."""
    if not raw:
        return []

    specs: list[IncludeSpec] = []
    seen: set[ReadingInclude] = set()
    for item in raw.split("|"):
        token, _, attributes_string = item.partition(":")
        relation = ReadingInclude.from_token(token)
        if relation is None or relation in seen:
            continue

        requested = [a.strip() for a in attributes_string.split(",") if a.strip()]
        attributes = tuple(a for a in requested if a in relation.attributes)
        if not attributes:
            attributes = relation.attributes

        seen.add(relation)
        specs.append(IncludeSpec(relation=relation, attributes=attributes))
    return specs
