"""Core atom data structures and the in-memory atom table.

Atoms are the records of the hypergraph: nodes, and links whose outgoing set
is an ordered tuple of other atom handles. A link may reference nodes or other
links, and the same handle may appear more than once in one tuple.

The AtomTable resolves handles to atoms and maintains the incoming index
(member handle -> handles of links that reference it). It is the reference
implementation of the resolver contract consumed by the link chase engine.

Thread Safety:
    All operations on AtomTable are protected by an internal RLock
    (reentrant lock), allowing safe concurrent access from multiple threads.

    For atomic batch operations, use the batch() context manager:
        with table.batch():
            table.add_node(node1)
            table.add_node(node2)
            table.add_link(link)
"""

import threading
import uuid
from collections import defaultdict
from collections.abc import Generator, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Node:
    """A named vertex of the hypergraph.

    Attributes:
        handle: Unique identifier for the node
        type: Atom type tag (e.g., "ConceptNode", "PredicateNode")
        properties: Arbitrary key-value metadata

    Raises:
        TypeError: If handle or type is not a string
    """

    handle: str
    type: str
    properties: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.handle, str):
            raise TypeError(f"Node handle must be a string, got: {type(self.handle).__name__}")
        if not isinstance(self.type, str):
            raise TypeError(f"Node type must be a string, got: {type(self.type).__name__}")

    @property
    def is_link(self) -> bool:
        return False


@dataclass
class Link:
    """A typed, ordered tuple of atom handles.

    Attributes:
        handle: Unique identifier for the link
        type: Atom type tag (e.g., "InheritanceLink", "EvaluationLink")
        outgoing: Member handles in tuple order; may reference nodes or links
        properties: Arbitrary key-value metadata

    Raises:
        TypeError: If handle, type or any outgoing member is not a string
        ValueError: If outgoing is empty
    """

    handle: str
    type: str
    outgoing: tuple[str, ...]
    properties: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.handle, str):
            raise TypeError(f"Link handle must be a string, got: {type(self.handle).__name__}")
        if not isinstance(self.type, str):
            raise TypeError(f"Link type must be a string, got: {type(self.type).__name__}")
        self.outgoing = tuple(self.outgoing)
        if not self.outgoing:
            raise ValueError(f"Link {self.handle!r} must have at least one member")
        for member in self.outgoing:
            if not isinstance(member, str):
                raise TypeError(
                    f"Link outgoing members must be strings, got: {type(member).__name__}"
                )

    @property
    def is_link(self) -> bool:
        return True

    @property
    def arity(self) -> int:
        """Number of positions in the outgoing tuple."""
        return len(self.outgoing)

    @property
    def member_set(self) -> set[str]:
        """Distinct member handles."""
        return set(self.outgoing)


Atom = Node | Link


class AtomTable:
    """Handle table and incoming index for a hypergraph of atoms.

    Design principles:
    - Handles are plain strings, resolved through this table only
    - Incoming sets are indexed, outgoing sets live on the link itself
    - Enumeration works on a snapshot taken under the lock
    """

    def __init__(self) -> None:
        self._atoms: dict[str, Atom] = {}
        # Indexes for fast lookup
        self._incoming: dict[str, set[str]] = defaultdict(set)
        self._atoms_by_type: dict[str, set[str]] = defaultdict(set)
        # Reentrant so batch() can wrap the public methods
        self._lock = threading.RLock()

    def __getstate__(self) -> dict[str, Any]:
        """Support for pickle/deepcopy - exclude the lock."""
        state = self.__dict__.copy()
        del state["_lock"]
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        """Support for pickle/deepcopy - recreate the lock."""
        self.__dict__.update(state)
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._atoms)

    def __contains__(self, handle: object) -> bool:
        with self._lock:
            return handle in self._atoms

    # ========== Thread Safety ==========

    @contextmanager
    def batch(self) -> Generator[None, None, None]:
        """Hold lock for multiple operations - provides isolation, NOT rollback.

        WARNING: If an exception occurs mid-batch, partial changes persist.
        The lock is always released properly regardless of exceptions.

        Yields:
            None
        """
        with self._lock:
            yield

    # ========== Atom Operations ==========

    def add_node(self, node: Node) -> None:
        """Add a node, overwriting any atom with the same handle.

        Raises:
            ValueError: If the handle belongs to a link
        """
        with self._lock:
            existing = self._atoms.get(node.handle)
            if isinstance(existing, Link):
                raise ValueError(f"Handle {node.handle!r} already belongs to a link")
            if existing is not None:
                self._discard_type(existing)
            self._atoms[node.handle] = node
            self._atoms_by_type[node.type].add(node.handle)

    def add_link(self, link: Link) -> None:
        """Add a link and index it in the incoming set of each member.

        If a link with the same handle exists it is replaced and the
        incoming index is updated accordingly. Members need not exist yet;
        validate() reports dangling members.

        Raises:
            ValueError: If the handle belongs to a node, or the link
                references itself
        """
        with self._lock:
            if link.handle in link.outgoing:
                raise ValueError(f"Link {link.handle!r} cannot reference itself")
            existing = self._atoms.get(link.handle)
            if isinstance(existing, Node):
                raise ValueError(f"Handle {link.handle!r} already belongs to a node")
            if existing is not None:
                self._discard_type(existing)
                for member in existing.member_set - link.member_set:
                    self._discard_incoming(member, link.handle)

            self._atoms[link.handle] = link
            self._atoms_by_type[link.type].add(link.handle)
            for member in link.member_set:
                self._incoming[member].add(link.handle)

    def new_link(
        self,
        type: str,
        outgoing: Iterable[str],
        properties: dict[str, Any] | None = None,
    ) -> Link:
        """Create and add a link with a generated handle."""
        link = Link(str(uuid.uuid4()), type, tuple(outgoing), properties or {})
        self.add_link(link)
        return link

    def get_atom(self, handle: str) -> Atom | None:
        """Get an atom by handle, or None if not found."""
        with self._lock:
            return self._atoms.get(handle)

    # Resolver contract name for get_atom
    resolve = get_atom

    def get_node(self, handle: str) -> Node | None:
        """Get a node by handle, or None if missing or not a node."""
        atom = self.get_atom(handle)
        return atom if isinstance(atom, Node) else None

    def get_link(self, handle: str) -> Link | None:
        """Get a link by handle, or None if missing or not a link."""
        atom = self.get_atom(handle)
        return atom if isinstance(atom, Link) else None

    def has_atom(self, handle: str) -> bool:
        with self._lock:
            return handle in self._atoms

    def get_atoms_by_type(self, atom_type: str) -> list[Atom]:
        """Get all atoms of exactly this type."""
        with self._lock:
            return [self._atoms[h] for h in self._atoms_by_type.get(atom_type, set())]

    def get_all_nodes(self) -> list[Node]:
        with self._lock:
            return [a for a in self._atoms.values() if isinstance(a, Node)]

    def get_all_links(self) -> list[Link]:
        with self._lock:
            return [a for a in self._atoms.values() if isinstance(a, Link)]

    def delete_atom(self, handle: str) -> bool:
        """Delete an atom. Returns True if deleted, False if not found.

        Raises:
            ValueError: If the atom is still referenced by a link. Use
                delete_atom_cascade() to remove the referencing links too.
        """
        with self._lock:
            atom = self._atoms.get(handle)
            if atom is None:
                return False
            if self._incoming.get(handle):
                raise ValueError(
                    f"Atom {handle!r} is referenced by {len(self._incoming[handle])} link(s)"
                )
            self._remove(atom)
            return True

    def delete_atom_cascade(self, handle: str) -> tuple[bool, int]:
        """Delete an atom along with every link that references it, recursively.

        Returns:
            Tuple of (atom_deleted, links_deleted_count)
        """
        with self._lock:
            if handle not in self._atoms:
                return (False, 0)

            doomed = {handle}
            frontier = [handle]
            while frontier:
                current = frontier.pop()
                for link_handle in self._incoming.get(current, ()):
                    if link_handle not in doomed:
                        doomed.add(link_handle)
                        frontier.append(link_handle)

            for doomed_handle in doomed:
                self._remove(self._atoms[doomed_handle])
            return (True, len(doomed) - 1)

    # ========== Enumeration ==========

    def incoming_set(self, handle: str) -> Iterator[Link]:
        """Lazily yield the links whose outgoing tuple contains handle.

        Each link is yielded once even if handle occupies several positions.
        The index is snapshotted when iteration starts; links deleted before
        they are reached are skipped.
        """
        with self._lock:
            link_handles = list(self._incoming.get(handle, ()))
        for link_handle in link_handles:
            link = self.get_link(link_handle)
            if link is not None:
                yield link

    def outgoing_set(self, handle: str) -> Iterator[Atom | None]:
        """Yield the members of a link in tuple order.

        Members are resolved together under the lock, so a concurrent
        cascade delete either removes the link first or not at all. A
        handle that no longer exists (a link deleted since it was
        enumerated) yields nothing. A member handle that never resolved
        is yielded as None.

        Raises:
            KeyError: If handle names a node
        """
        with self._lock:
            atom = self._atoms.get(handle)
            if isinstance(atom, Node):
                raise KeyError(f"No link with handle {handle!r}")
            if atom is None:
                return iter(())
            members = [self._atoms.get(member) for member in atom.outgoing]
        return iter(members)

    def incoming_degree(self, handle: str, link_type: str | None = None) -> int:
        """Count links referencing handle, optionally of one type only."""
        with self._lock:
            link_handles = self._incoming.get(handle, set())
            if link_type is None:
                return len(link_handles)
            return sum(1 for h in link_handles if self._atoms[h].type == link_type)

    # ========== Statistics & Validation ==========

    def stats(self) -> dict[str, Any]:
        """Get atom table statistics.

        Returns:
            Dict with num_nodes, num_links, nodes_by_type, links_by_type
        """
        with self._lock:
            nodes_by_type: dict[str, int] = defaultdict(int)
            links_by_type: dict[str, int] = defaultdict(int)
            for atom in self._atoms.values():
                if isinstance(atom, Link):
                    links_by_type[atom.type] += 1
                else:
                    nodes_by_type[atom.type] += 1
            return {
                "num_nodes": sum(nodes_by_type.values()),
                "num_links": sum(links_by_type.values()),
                "nodes_by_type": dict(nodes_by_type),
                "links_by_type": dict(links_by_type),
            }

    def validate(self) -> dict[str, Any]:
        """Validate table integrity and detect dangling member references.

        Checks for:
        - Links referencing handles that do not resolve
        - Incoming index consistency with the links' outgoing tuples
        - Type index consistency

        Returns:
            Dict with 'valid' (bool), 'errors' (list of error descriptions),
            and 'dangling_links' (list of link handles with missing members)
        """
        with self._lock:
            errors: list[str] = []
            dangling_links: list[str] = []

            for handle, atom in self._atoms.items():
                if not isinstance(atom, Link):
                    continue
                missing = [m for m in atom.outgoing if m not in self._atoms]
                if missing:
                    dangling_links.append(handle)
                    errors.append(f"Link '{handle}' references non-existent atoms: {missing}")
                for member in atom.member_set:
                    if handle not in self._incoming.get(member, set()):
                        errors.append(
                            f"Incoming index for '{member}' is missing link '{handle}'"
                        )

            for member, link_handles in self._incoming.items():
                for link_handle in link_handles:
                    link = self._atoms.get(link_handle)
                    if not isinstance(link, Link):
                        errors.append(
                            f"Incoming index for '{member}' references "
                            f"non-existent link: '{link_handle}'"
                        )
                    elif member not in link.member_set:
                        errors.append(
                            f"Incoming index for '{member}' lists link '{link_handle}' "
                            f"which does not contain it"
                        )

            for atom_type, handles in self._atoms_by_type.items():
                for handle in handles:
                    if handle not in self._atoms:
                        errors.append(
                            f"Atoms-by-type index for '{atom_type}' contains "
                            f"non-existent atom: '{handle}'"
                        )

            return {
                "valid": len(errors) == 0,
                "errors": errors,
                "dangling_links": dangling_links,
            }

    # ========== Serialization ==========

    def to_dict(self) -> dict[str, Any]:
        """Export to a plain dict (the JSON file format)."""
        with self._lock:
            return {
                "nodes": [
                    {"handle": n.handle, "type": n.type, "properties": n.properties}
                    for n in self._atoms.values()
                    if isinstance(n, Node)
                ],
                "links": [
                    {
                        "handle": lk.handle,
                        "type": lk.type,
                        "outgoing": list(lk.outgoing),
                        "properties": lk.properties,
                    }
                    for lk in self._atoms.values()
                    if isinstance(lk, Link)
                ],
            }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AtomTable":
        """Import from a plain dict."""
        table = cls()
        for node_data in data.get("nodes", []):
            table.add_node(
                Node(
                    handle=node_data["handle"],
                    type=node_data["type"],
                    properties=node_data.get("properties", {}),
                )
            )
        for link_data in data.get("links", []):
            table.add_link(
                Link(
                    handle=link_data["handle"],
                    type=link_data["type"],
                    outgoing=tuple(link_data["outgoing"]),
                    properties=link_data.get("properties", {}),
                )
            )
        return table

    # ========== Index maintenance (caller holds the lock) ==========

    def _remove(self, atom: Atom) -> None:
        self._discard_type(atom)
        if isinstance(atom, Link):
            for member in atom.member_set:
                self._discard_incoming(member, atom.handle)
        self._incoming.pop(atom.handle, None)
        del self._atoms[atom.handle]

    def _discard_type(self, atom: Atom) -> None:
        self._atoms_by_type[atom.type].discard(atom.handle)
        if not self._atoms_by_type[atom.type]:
            del self._atoms_by_type[atom.type]

    def _discard_incoming(self, member: str, link_handle: str) -> None:
        link_handles = self._incoming.get(member)
        if link_handles is None:
            return
        link_handles.discard(link_handle)
        if not link_handles:
            del self._incoming[member]
