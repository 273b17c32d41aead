"""AtomSpace client — the primary interface for building and chasing links."""

from __future__ import annotations

import uuid
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from linkchase.engine.chase import LinkChaser, LinkVisitor, Visitor
from linkchase.engine.core import AtomTable
from linkchase.engine.core import Link as CoreLink
from linkchase.engine.core import Node as CoreNode
from linkchase.engine.persistence import load_table, save_table
from linkchase.models import AtomSpaceStats, Link, Match, Node, ValidationResult

DEFAULT_NODE_TYPE = "ConceptNode"

# --- Conversion helpers: engine core types <-> pydantic models ---


def _core_node_to_model(cn: CoreNode) -> Node:
    return Node(handle=cn.handle, type=cn.type, properties=cn.properties)


def _core_link_to_model(cl: CoreLink) -> Link:
    return Link(
        handle=cl.handle,
        type=cl.type,
        outgoing=list(cl.outgoing),
        properties=cl.properties,
    )


def _core_atom_to_model(atom: CoreNode | CoreLink) -> Node | Link:
    if isinstance(atom, CoreLink):
        return _core_link_to_model(atom)
    return _core_node_to_model(atom)


class AtomSpace:
    """An in-memory hypergraph of atoms with link chasing.

    Example:
        ```python
        space = AtomSpace()
        space.link(["cat", "mammal"], type="InheritanceLink")
        space.link(["cat", "pet"], type="InheritanceLink")

        [m.target for m in space.targets("cat", "InheritanceLink")]
        # ["mammal", "pet"] in some order
        ```
    """

    def __init__(self, table: AtomTable | None = None) -> None:
        self._table = table if table is not None else AtomTable()
        self._chaser = LinkChaser(self._table)

    @property
    def table(self) -> AtomTable:
        """The underlying atom table."""
        return self._table

    # --- Persistence ---

    def save(self, path: str | Path) -> None:
        """Write the atom space to a JSON file."""
        save_table(self._table, path)

    @classmethod
    def load(cls, path: str | Path) -> AtomSpace:
        """Read an atom space from a JSON file written by save()."""
        return cls(load_table(path))

    # --- Nodes ---

    def node(self, handle: str, *, type: str = DEFAULT_NODE_TYPE, **properties: Any) -> Node:
        """Create or update a node.

        If a node with the given handle exists, its type is replaced and
        properties are merged. Otherwise a new node is created.

        Args:
            handle: Unique node handle.
            type: Node type (e.g., ``"ConceptNode"``).
            **properties: Arbitrary key-value metadata stored on the node.

        Returns:
            The created or updated Node.

        Raises:
            ValueError: If ``handle`` is empty or already names a link.
        """
        if not handle:
            raise ValueError("Node handle must be a non-empty string")
        with self._table.batch():
            existing = self._table.get_node(handle)
            merged = dict(existing.properties) if existing else {}
            merged.update(properties)
            self._table.add_node(CoreNode(handle=handle, type=type, properties=merged))
            core_node = self._table.get_node(handle)
        assert core_node is not None, f"Node {handle!r} should exist after add_node"
        return _core_node_to_model(core_node)

    def get_node(self, handle: str) -> Node | None:
        cn = self._table.get_node(handle)
        return _core_node_to_model(cn) if cn else None

    def nodes(self, *, type: str | None = None) -> list[Node]:
        """List nodes, optionally only those of one type."""
        return [
            _core_node_to_model(n)
            for n in self._table.get_all_nodes()
            if type is None or n.type == type
        ]

    # --- Links ---

    def link(
        self,
        members: list[str],
        *,
        type: str,
        handle: str | None = None,
        properties: dict[str, Any] | None = None,
    ) -> Link:
        """Create a link over an ordered list of member handles.

        Unknown members are auto-created as ``ConceptNode`` nodes. A member
        may name another link.

        Args:
            members: Member handles in tuple order. Must contain at least 1.
            type: Link type (e.g., ``"InheritanceLink"``).
            handle: Optional link handle. Auto-generated UUID if omitted.
            properties: Arbitrary key-value metadata.

        Returns:
            The created Link.

        Raises:
            ValueError: If ``members`` is empty or holds an empty handle,
                if ``handle`` is empty, or if ``handle`` already names a
                node. No atoms are created when it raises.

        Example:
            ```python
            space.link(["likes", "alice", "bob"], type="EvaluationLink")
            ```
        """
        if not members:
            raise ValueError("A link must have at least one member")
        if any(not m for m in members):
            raise ValueError("Member handles must be non-empty strings")
        if handle is not None and not handle:
            raise ValueError("Link handle must be a non-empty string")

        link_handle = handle if handle is not None else str(uuid.uuid4())
        if link_handle in members:
            raise ValueError(f"Link {link_handle!r} cannot reference itself")
        core_link = CoreLink(
            handle=link_handle,
            type=type,
            outgoing=tuple(members),
            properties=properties or {},
        )
        with self._table.batch():
            if self._table.get_node(link_handle) is not None:
                raise ValueError(f"Handle {link_handle!r} already belongs to a node")
            for member in members:
                if not self._table.has_atom(member):
                    self._table.add_node(CoreNode(handle=member, type=DEFAULT_NODE_TYPE))
            self._table.add_link(core_link)
            stored = self._table.get_link(link_handle)
        assert stored is not None, f"Link {link_handle!r} should exist after add_link"
        return _core_link_to_model(stored)

    def get_link(self, handle: str) -> Link | None:
        cl = self._table.get_link(handle)
        return _core_link_to_model(cl) if cl else None

    def links(self, *, type: str | None = None) -> list[Link]:
        """List links, optionally only those of one type."""
        return [
            _core_link_to_model(lk)
            for lk in self._table.get_all_links()
            if type is None or lk.type == type
        ]

    # --- Atoms ---

    def get_atom(self, handle: str) -> Node | Link | None:
        atom = self._table.get_atom(handle)
        return _core_atom_to_model(atom) if atom else None

    def has_atom(self, handle: str) -> bool:
        return self._table.has_atom(handle)

    def delete(self, handle: str, *, cascade: bool = False) -> bool:
        """Delete an atom by handle.

        Args:
            handle: The atom to delete.
            cascade: If ``True``, also delete every link referencing it.

        Returns:
            ``True`` if the atom existed and was deleted, ``False`` otherwise.

        Raises:
            ValueError: If the atom is still referenced and ``cascade`` is off.
        """
        if cascade:
            deleted, _ = self._table.delete_atom_cascade(handle)
            return deleted
        return self._table.delete_atom(handle)

    def incoming(self, handle: str, *, type: str | None = None) -> list[Link]:
        """Links that reference ``handle``, optionally of one type."""
        return [
            _core_link_to_model(lk)
            for lk in self._table.incoming_set(handle)
            if type is None or lk.type == type
        ]

    def outgoing(self, handle: str) -> list[Node | Link]:
        """Members of link ``handle`` in tuple order.

        Raises:
            KeyError: If ``handle`` names a node.
        """
        return [
            _core_atom_to_model(atom)
            for atom in self._table.outgoing_set(handle)
            if atom is not None
        ]

    # --- Link chasing ---

    def chase(
        self,
        handle: str,
        type: str,
        from_position: int,
        to_position: int,
        visitor: Visitor,
    ) -> bool:
        """Call ``visitor`` on each atom reached through a ``type`` link.

        See ``LinkChaser.chase_link`` for the matching rules. Returns ``True``
        if the visitor stopped the chase.

        Raises:
            UnresolvedHandleError: If ``handle`` does not name an atom.
        """
        return self._chaser.chase_link(handle, type, from_position, to_position, visitor)

    def chase_with_link(
        self,
        handle: str,
        type: str,
        from_position: int,
        to_position: int,
        visitor: LinkVisitor,
    ) -> bool:
        return self._chaser.chase_link_with_link(
            handle, type, from_position, to_position, visitor
        )

    def follow(self, handle: str, type: str, visitor: Visitor) -> bool:
        return self._chaser.follow_binary_link(handle, type, visitor)

    def follow_with_link(self, handle: str, type: str, visitor: LinkVisitor) -> bool:
        return self._chaser.follow_binary_link_with_link(handle, type, visitor)

    def backtrack(self, handle: str, type: str, visitor: Visitor) -> bool:
        return self._chaser.backtrack_binary_link(handle, type, visitor)

    def backtrack_with_link(self, handle: str, type: str, visitor: LinkVisitor) -> bool:
        return self._chaser.backtrack_binary_link_with_link(handle, type, visitor)

    def targets(
        self,
        handle: str,
        type: str,
        from_position: int = 0,
        to_position: int = 1,
    ) -> list[Match]:
        """Collect every atom reached from ``handle`` through ``type`` links.

        Example:
            ```python
            space.targets("likes", "EvaluationLink", from_position=0, to_position=2)
            ```
        """
        return [
            Match(target=target, link=link)
            for target, link in self._chaser.collect_links(
                handle, type, from_position, to_position
            )
        ]

    def sources(self, handle: str, type: str) -> list[Match]:
        """Collect the sources of binary ``type`` links pointing at ``handle``."""
        return self.targets(handle, type, from_position=1, to_position=0)

    def follow_one(
        self,
        handle: str,
        type: str,
        from_position: int = 0,
        to_position: int = 1,
    ) -> str | None:
        """Target of the first matching link, or ``None``."""
        return self._chaser.follow_link(handle, type, from_position, to_position)

    # --- Bulk & stats ---

    @contextmanager
    def batch(self) -> Generator[None, None, None]:
        """Hold the table lock across several operations.

        Provides isolation from other threads, **not** rollback.
        """
        with self._table.batch():
            yield

    def validate(self) -> ValidationResult:
        """Check the atom table for dangling members and index drift."""
        result = self._table.validate()
        return ValidationResult(
            valid=result["valid"],
            errors=result.get("errors", []),
            dangling_links=result.get("dangling_links", []),
        )

    def stats(self) -> AtomSpaceStats:
        """Get node and link counts by type."""
        s = self._table.stats()
        return AtomSpaceStats(
            node_count=s["num_nodes"],
            link_count=s["num_links"],
            nodes_by_type=s.get("nodes_by_type", {}),
            links_by_type=s.get("links_by_type", {}),
        )
