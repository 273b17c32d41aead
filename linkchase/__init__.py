"""linkchase — positional link chasing over a hypergraph of atoms."""

__version__ = "0.1.0"

from linkchase.client import AtomSpace
from linkchase.engine.chase import DanglingHandleError, LinkChaser, UnresolvedHandleError
from linkchase.models import AtomSpaceStats, Link, Match, Node, ValidationResult

__all__ = [
    "AtomSpace",
    "AtomSpaceStats",
    "DanglingHandleError",
    "Link",
    "LinkChaser",
    "Match",
    "Node",
    "UnresolvedHandleError",
    "ValidationResult",
    "__version__",
]
