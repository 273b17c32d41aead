from linkchase.engine.chase import (
    AtomResolver,
    DanglingHandleError,
    LinkChaser,
    UnresolvedHandleError,
    backtrack_binary_link,
    backtrack_binary_link_with_link,
    chase_link,
    chase_link_with_link,
    follow_binary_link,
    follow_binary_link_with_link,
)
from linkchase.engine.core import Atom, AtomTable, Link, Node
from linkchase.engine.persistence import load_table, save_table

__all__ = [
    "Atom",
    "AtomResolver",
    "AtomTable",
    "DanglingHandleError",
    "Link",
    "LinkChaser",
    "Node",
    "UnresolvedHandleError",
    "backtrack_binary_link",
    "backtrack_binary_link_with_link",
    "chase_link",
    "chase_link_with_link",
    "follow_binary_link",
    "follow_binary_link_with_link",
    "load_table",
    "save_table",
]
