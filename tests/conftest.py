"""Shared fixtures for linkchase tests."""

import pytest

from linkchase import AtomSpace
from linkchase.engine import AtomTable, Link, Node


@pytest.fixture()
def table():
    """Atom table with two inheritance links out of X.

    Nodes (3): X, Y, Z (ConceptNode)

    Links (2):
        l_xy: InheritanceLink(X, Y)
        l_xz: InheritanceLink(X, Z)
    """
    t = AtomTable()
    for handle in ("X", "Y", "Z"):
        t.add_node(Node(handle, "ConceptNode"))
    t.add_link(Link("l_xy", "InheritanceLink", ("X", "Y")))
    t.add_link(Link("l_xz", "InheritanceLink", ("X", "Z")))
    return t


@pytest.fixture()
def space():
    """AtomSpace holding a small animal taxonomy.

    InheritanceLink: cat->mammal, dog->mammal, mammal->animal, cat->pet
    EvaluationLink: (likes, alice, cat), (likes, bob, dog), (fears, bob, cat)
    MemberLink: cat->household (two distinct links)
    """
    s = AtomSpace()
    s.link(["cat", "mammal"], type="InheritanceLink", handle="cat_mammal")
    s.link(["dog", "mammal"], type="InheritanceLink", handle="dog_mammal")
    s.link(["mammal", "animal"], type="InheritanceLink", handle="mammal_animal")
    s.link(["cat", "pet"], type="InheritanceLink", handle="cat_pet")
    s.link(["likes", "alice", "cat"], type="EvaluationLink", handle="alice_likes_cat")
    s.link(["likes", "bob", "dog"], type="EvaluationLink", handle="bob_likes_dog")
    s.link(["fears", "bob", "cat"], type="EvaluationLink", handle="bob_fears_cat")
    s.link(["cat", "household"], type="MemberLink", handle="member_1")
    s.link(["cat", "household"], type="MemberLink", handle="member_2")
    return s
