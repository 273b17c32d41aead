"""Link chasing: walk from an atom to its partners through typed links.

Given an atom and a link type, the engine scans the atom's incoming set for
links of that type in which the atom sits at a fixed position, and hands
the member at another fixed position to a visitor. The visitor's return
value controls the scan: True stops it, False asks for more.

    chaser = LinkChaser(table)
    chaser.follow_binary_link("cat", "InheritanceLink", parents.append)

follow_binary_link() walks a binary link from position 0 to position 1;
backtrack_binary_link() walks it from 1 to 0. chase_link() takes arbitrary
positions, for links of any arity.

The engine keeps no state between calls and takes the atom resolver as a
constructor argument, so one instance may serve many threads at once.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, Protocol, runtime_checkable

from linkchase.engine.core import Atom, Link

logger = logging.getLogger("linkchase.chase")

Visitor = Callable[[str], Any]
LinkVisitor = Callable[[str, str], Any]


class UnresolvedHandleError(LookupError):
    """The queried handle does not name an atom; no traversal was performed."""

    def __init__(self, handle: str) -> None:
        super().__init__(f"Handle {handle!r} does not resolve to an atom")
        self.handle = handle


class DanglingHandleError(RuntimeError):
    """A link's outgoing set yielded a member that does not resolve."""

    def __init__(self, link_handle: str, position: int) -> None:
        super().__init__(
            f"Link {link_handle!r} has an unresolvable member at position {position}"
        )
        self.link_handle = link_handle
        self.position = position


@runtime_checkable
class AtomResolver(Protocol):
    """What the engine needs from an atom store.

    Every enumeration call must return a fresh iterable.
    """

    def resolve(self, handle: str) -> Atom | None: ...

    def incoming_set(self, handle: str) -> Iterable[Link]: ...

    def outgoing_set(self, handle: str) -> Iterable[Atom | None]: ...


class LinkChaser:
    """Positional link-following over an AtomResolver."""

    def __init__(self, resolver: AtomResolver) -> None:
        self._resolver = resolver

    @property
    def resolver(self) -> AtomResolver:
        return self._resolver

    def chase_link(
        self,
        handle: str,
        link_type: str,
        from_position: int,
        to_position: int,
        visitor: Visitor,
    ) -> bool:
        """Visit the atom at to_position of each link holding handle at from_position.

        Looks at the incoming set of handle, keeps links of exactly
        link_type, checks that handle occupies from_position, and calls
        visitor with the member at to_position. Links too short to have
        both positions are skipped. When from_position equals to_position
        the queried atom itself is reported.

        Args:
            handle: The atom whose incoming links are inspected
            link_type: Exact link type to match (no subtype reasoning)
            from_position: Tuple index the queried atom must occupy
            to_position: Tuple index of the reported atom
            visitor: Called with each target handle; return True to stop

        Returns:
            True if a visitor call asked to stop, False once the incoming
            set is exhausted

        Raises:
            UnresolvedHandleError: If handle does not resolve
            DanglingHandleError: If a link yields an unresolvable member
            ValueError: If a position is negative
        """
        return self._chase(
            handle,
            link_type,
            from_position,
            to_position,
            lambda target, _link: visitor(target),
        )

    def chase_link_with_link(
        self,
        handle: str,
        link_type: str,
        from_position: int,
        to_position: int,
        visitor: LinkVisitor,
    ) -> bool:
        """Same as chase_link(), but visitor also receives the matching link's handle.

        Useful when several links of the same type join the same pair of
        atoms and the caller must tell them apart.
        """
        return self._chase(handle, link_type, from_position, to_position, visitor)

    # ========== Binary link wrappers ==========

    def follow_binary_link(self, handle: str, link_type: str, visitor: Visitor) -> bool:
        """Given the source of a binary link, visit its targets (0 -> 1)."""
        return self.chase_link(handle, link_type, 0, 1, visitor)

    def follow_binary_link_with_link(
        self, handle: str, link_type: str, visitor: LinkVisitor
    ) -> bool:
        return self.chase_link_with_link(handle, link_type, 0, 1, visitor)

    def backtrack_binary_link(self, handle: str, link_type: str, visitor: Visitor) -> bool:
        """Given the target of a binary link, visit its sources (1 -> 0)."""
        return self.chase_link(handle, link_type, 1, 0, visitor)

    def backtrack_binary_link_with_link(
        self, handle: str, link_type: str, visitor: LinkVisitor
    ) -> bool:
        return self.chase_link_with_link(handle, link_type, 1, 0, visitor)

    # ========== Collecting helpers ==========

    def follow_link(
        self,
        handle: str,
        link_type: str,
        from_position: int = 0,
        to_position: int = 1,
    ) -> str | None:
        """Return the target of the first matching link, or None.

        Meant for relations where an atom has at most one such link; with
        several, which one wins depends on incoming-set order.
        """
        found: list[str] = []

        def take_first(target: str) -> bool:
            found.append(target)
            return True

        self.chase_link(handle, link_type, from_position, to_position, take_first)
        return found[0] if found else None

    def collect_links(
        self,
        handle: str,
        link_type: str,
        from_position: int = 0,
        to_position: int = 1,
    ) -> list[tuple[str, str]]:
        """Return every (target, link) pair, in incoming-set order."""
        matches: list[tuple[str, str]] = []

        def collect(target: str, link_handle: str) -> bool:
            matches.append((target, link_handle))
            return False

        self.chase_link_with_link(handle, link_type, from_position, to_position, collect)
        return matches

    # ========== Scan ==========

    def _chase(
        self,
        handle: str,
        link_type: str,
        from_position: int,
        to_position: int,
        visitor: LinkVisitor,
    ) -> bool:
        if from_position < 0 or to_position < 0:
            raise ValueError(
                f"Positions must be non-negative, got from={from_position}, to={to_position}"
            )

        atom = self._resolver.resolve(handle)
        if atom is None:
            logger.debug("chase aborted: %r does not resolve", handle)
            raise UnresolvedHandleError(handle)

        logger.debug(
            "chasing %s links of %r from position %d to %d",
            link_type,
            handle,
            from_position,
            to_position,
        )
        for link in self._resolver.incoming_set(handle):
            if link.type != link_type:
                continue
            target = self._pursue(link, atom.handle, from_position, to_position)
            if target is None:
                continue
            if visitor(target, link.handle):
                logger.debug("chase of %r stopped by visitor at link %r", handle, link.handle)
                return True
        return False

    def _pursue(
        self,
        link: Link,
        queried: str,
        from_position: int,
        to_position: int,
    ) -> str | None:
        """Scan one link's outgoing set; return the target handle or None."""
        last = max(from_position, to_position)
        target: str | None = None
        for position, member in enumerate(self._resolver.outgoing_set(link.handle)):
            if member is None:
                raise DanglingHandleError(link.handle, position)
            if position == from_position and member.handle != queried:
                logger.debug(
                    "link %r rejected: position %d holds %r", link.handle, position, member.handle
                )
                return None
            if position == to_position:
                target = member.handle
            if position == last:
                return target
        # Tuple ended before reaching both positions
        return None


# ========== Module-level entry points ==========


def chase_link(
    resolver: AtomResolver,
    handle: str,
    link_type: str,
    from_position: int,
    to_position: int,
    visitor: Visitor,
) -> bool:
    return LinkChaser(resolver).chase_link(handle, link_type, from_position, to_position, visitor)


def chase_link_with_link(
    resolver: AtomResolver,
    handle: str,
    link_type: str,
    from_position: int,
    to_position: int,
    visitor: LinkVisitor,
) -> bool:
    return LinkChaser(resolver).chase_link_with_link(
        handle, link_type, from_position, to_position, visitor
    )


def follow_binary_link(
    resolver: AtomResolver, handle: str, link_type: str, visitor: Visitor
) -> bool:
    return LinkChaser(resolver).follow_binary_link(handle, link_type, visitor)


def follow_binary_link_with_link(
    resolver: AtomResolver, handle: str, link_type: str, visitor: LinkVisitor
) -> bool:
    return LinkChaser(resolver).follow_binary_link_with_link(handle, link_type, visitor)


def backtrack_binary_link(
    resolver: AtomResolver, handle: str, link_type: str, visitor: Visitor
) -> bool:
    return LinkChaser(resolver).backtrack_binary_link(handle, link_type, visitor)


def backtrack_binary_link_with_link(
    resolver: AtomResolver, handle: str, link_type: str, visitor: LinkVisitor
) -> bool:
    return LinkChaser(resolver).backtrack_binary_link_with_link(handle, link_type, visitor)
