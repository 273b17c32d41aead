"""Pydantic models for the linkchase public API.

These are thin wrappers over the engine types (engine.core), providing
Pydantic validation and serialization for the client-facing API.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


class Node(BaseModel):
    """A named vertex of the hypergraph.

    Nodes are auto-created when a link references an unknown handle.
    """

    handle: str
    type: str = "ConceptNode"
    properties: dict[str, Any] = Field(default_factory=dict)

    def __repr__(self) -> str:
        parts = [f"Node({self.handle!r}, type={self.type!r}"]
        if self.properties:
            parts.append(f", properties={self.properties!r}")
        parts.append(")")
        return "".join(parts)


class Link(BaseModel):
    """A typed, ordered tuple of atom handles.

    Member order is significant: positions in ``outgoing`` are what link
    chasing matches on.
    """

    handle: str
    type: str
    outgoing: list[str]
    properties: dict[str, Any] = Field(default_factory=dict)

    @field_validator("outgoing")
    @classmethod
    def _check_members(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("A link must have at least one member")
        return value

    def __repr__(self) -> str:
        return f"Link({self.type!r}: {self.outgoing})"

    @property
    def arity(self) -> int:
        return len(self.outgoing)


class Match(BaseModel):
    """One result of a link chase: the atom reached and the link that led there."""

    target: str
    link: str


class ValidationResult(BaseModel):
    """Result of an atom table consistency check."""

    valid: bool
    errors: list[str] = Field(default_factory=list)
    dangling_links: list[str] = Field(default_factory=list)


class AtomSpaceStats(BaseModel):
    """Summary counts for an atom space, broken down by type."""

    node_count: int
    link_count: int
    nodes_by_type: dict[str, int]
    links_by_type: dict[str, int]
