"""Tests for core atom data structures and the atom table."""

import copy
import pickle

import pytest

from linkchase.engine.core import AtomTable, Link, Node


class TestNode:
    """Tests for Node dataclass."""

    def test_basic_node(self):
        node = Node(handle="cat", type="ConceptNode")
        assert node.handle == "cat"
        assert node.type == "ConceptNode"
        assert node.properties == {}
        assert node.is_link is False

    def test_non_string_handle_raises(self):
        with pytest.raises(TypeError, match="handle must be a string"):
            Node(handle=42, type="ConceptNode")

    def test_non_string_type_raises(self):
        with pytest.raises(TypeError, match="type must be a string"):
            Node(handle="cat", type=None)


class TestLink:
    """Tests for Link dataclass."""

    def test_basic_link(self):
        link = Link("l", "InheritanceLink", ("cat", "mammal"))
        assert link.outgoing == ("cat", "mammal")
        assert link.arity == 2
        assert link.is_link is True
        assert link.member_set == {"cat", "mammal"}

    def test_list_outgoing_becomes_tuple(self):
        link = Link("l", "ListLink", ["a", "b", "a"])
        assert link.outgoing == ("a", "b", "a")
        assert link.member_set == {"a", "b"}

    def test_non_string_member_raises(self):
        with pytest.raises(TypeError, match="outgoing members must be strings"):
            Link("l", "ListLink", ("a", 1))

    def test_non_string_type_raises(self):
        with pytest.raises(TypeError, match="type must be a string"):
            Link("l", 3, ("a",))

    def test_empty_outgoing_raises(self):
        with pytest.raises(ValueError, match="at least one member"):
            Link("l", "ListLink", ())


class TestAtomTable:
    """Tests for AtomTable storage and indexing."""

    def test_add_and_resolve(self, table):
        assert table.resolve("X") == Node("X", "ConceptNode")
        assert table.get_atom("l_xy").outgoing == ("X", "Y")
        assert table.resolve("missing") is None
        assert len(table) == 5
        assert "X" in table

    def test_get_node_and_link_filter_kind(self, table):
        assert table.get_node("l_xy") is None
        assert table.get_link("X") is None
        assert table.get_node("X") is not None
        assert table.get_link("l_xy") is not None

    def test_node_handle_cannot_become_link(self, table):
        with pytest.raises(ValueError, match="belongs to a node"):
            table.add_link(Link("X", "ListLink", ("Y",)))

    def test_link_handle_cannot_become_node(self, table):
        with pytest.raises(ValueError, match="belongs to a link"):
            table.add_node(Node("l_xy", "ConceptNode"))

    def test_self_reference_rejected(self, table):
        with pytest.raises(ValueError, match="cannot reference itself"):
            table.add_link(Link("loop", "ListLink", ("X", "loop")))

    def test_incoming_set(self, table):
        handles = sorted(lk.handle for lk in table.incoming_set("X"))
        assert handles == ["l_xy", "l_xz"]
        assert [lk.handle for lk in table.incoming_set("Y")] == ["l_xy"]
        assert list(table.incoming_set("missing")) == []

    def test_incoming_set_yields_link_once_for_repeated_member(self):
        t = AtomTable()
        t.add_link(Link("l", "ListLink", ("a", "a", "a")))
        assert [lk.handle for lk in t.incoming_set("a")] == ["l"]

    def test_incoming_set_is_fresh_per_call(self, table):
        first = table.incoming_set("X")
        second = table.incoming_set("X")
        assert len(list(first)) == 2
        assert len(list(second)) == 2

    def test_incoming_set_snapshot_skips_deleted_links(self, table):
        seen = []
        for link in table.incoming_set("X"):
            seen.append(link.handle)
            other = "l_xz" if link.handle == "l_xy" else "l_xy"
            table.delete_atom(other)
        assert len(seen) == 1

    def test_outgoing_set_in_order(self, table):
        table.add_link(Link("l_zyx", "ListLink", ("Z", "Y", "X")))
        assert [a.handle for a in table.outgoing_set("l_zyx")] == ["Z", "Y", "X"]

    def test_outgoing_set_dangling_member_is_none(self):
        t = AtomTable()
        t.add_node(Node("a", "ConceptNode"))
        t.add_link(Link("l", "ListLink", ("a", "ghost")))
        members = list(t.outgoing_set("l"))
        assert members[0].handle == "a"
        assert members[1] is None

    def test_outgoing_set_of_node_raises(self, table):
        with pytest.raises(KeyError):
            table.outgoing_set("X")

    def test_outgoing_set_of_deleted_link_is_empty(self, table):
        table.delete_atom("l_xy")
        assert list(table.outgoing_set("l_xy")) == []
        assert list(table.outgoing_set("missing")) == []

    def test_outgoing_set_resolves_members_eagerly(self, table):
        members = table.outgoing_set("l_xy")
        table.delete_atom_cascade("Y")
        assert [a.handle for a in members] == ["X", "Y"]

    def test_replace_link_reindexes(self, table):
        table.add_link(Link("l_xy", "InheritanceLink", ("Z", "Y")))
        assert sorted(lk.handle for lk in table.incoming_set("X")) == ["l_xz"]
        assert sorted(lk.handle for lk in table.incoming_set("Z")) == ["l_xy", "l_xz"]
        assert table.validate()["valid"] is True

    def test_replace_link_changes_type_index(self, table):
        table.add_link(Link("l_xy", "SimilarityLink", ("X", "Y")))
        assert [a.handle for a in table.get_atoms_by_type("InheritanceLink")] == ["l_xz"]
        assert [a.handle for a in table.get_atoms_by_type("SimilarityLink")] == ["l_xy"]

    def test_new_link_generates_handle(self, table):
        link = table.new_link("ListLink", ["X", "Y"])
        assert table.get_link(link.handle) == link
        assert link.outgoing == ("X", "Y")

    def test_get_all(self, table):
        assert sorted(n.handle for n in table.get_all_nodes()) == ["X", "Y", "Z"]
        assert sorted(lk.handle for lk in table.get_all_links()) == ["l_xy", "l_xz"]

    def test_incoming_degree(self, table):
        table.add_link(Link("l_sim", "SimilarityLink", ("X", "Z")))
        assert table.incoming_degree("X") == 3
        assert table.incoming_degree("X", "InheritanceLink") == 2
        assert table.incoming_degree("X", "MemberLink") == 0
        assert table.incoming_degree("missing") == 0


class TestAtomTableDeletion:
    """Tests for delete_atom and delete_atom_cascade."""

    def test_delete_unreferenced_link(self, table):
        assert table.delete_atom("l_xy") is True
        assert table.get_atom("l_xy") is None
        assert [lk.handle for lk in table.incoming_set("Y")] == []
        assert table.validate()["valid"] is True

    def test_delete_missing_returns_false(self, table):
        assert table.delete_atom("missing") is False

    def test_delete_referenced_atom_raises(self, table):
        with pytest.raises(ValueError, match="referenced by 2 link"):
            table.delete_atom("X")
        assert table.has_atom("X")

    def test_cascade_removes_incoming_links(self, table):
        deleted, links_deleted = table.delete_atom_cascade("X")
        assert deleted is True
        assert links_deleted == 2
        assert table.get_all_links() == []
        assert sorted(n.handle for n in table.get_all_nodes()) == ["Y", "Z"]
        assert table.validate()["valid"] is True

    def test_cascade_follows_links_to_links(self, table):
        table.add_link(Link("ctx", "ContextLink", ("Z", "l_xy")))
        deleted, links_deleted = table.delete_atom_cascade("Y")
        assert deleted is True
        assert links_deleted == 2
        assert table.get_atom("ctx") is None
        assert table.get_atom("l_xz") is not None
        assert table.validate()["valid"] is True

    def test_cascade_handles_mutual_references(self):
        t = AtomTable()
        t.add_link(Link("a", "ListLink", ("b",)))
        t.add_link(Link("b", "ListLink", ("a",)))
        assert t.delete_atom_cascade("a") == (True, 1)
        assert len(t) == 0

    def test_cascade_missing(self, table):
        assert table.delete_atom_cascade("missing") == (False, 0)


class TestAtomTableStatsAndValidation:
    """Tests for stats() and validate()."""

    def test_stats(self, table):
        s = table.stats()
        assert s["num_nodes"] == 3
        assert s["num_links"] == 2
        assert s["nodes_by_type"] == {"ConceptNode": 3}
        assert s["links_by_type"] == {"InheritanceLink": 2}

    def test_valid_table(self, table):
        result = table.validate()
        assert result == {"valid": True, "errors": [], "dangling_links": []}

    def test_dangling_member_reported(self, table):
        table.add_link(Link("l_ghost", "ListLink", ("X", "ghost")))
        result = table.validate()
        assert result["valid"] is False
        assert result["dangling_links"] == ["l_ghost"]
        assert "ghost" in result["errors"][0]


class TestAtomTableSerialization:
    """Tests for to_dict/from_dict and copying."""

    def test_round_trip_preserves_incoming(self, table):
        restored = AtomTable.from_dict(table.to_dict())
        assert sorted(lk.handle for lk in restored.incoming_set("X")) == ["l_xy", "l_xz"]
        assert restored.get_link("l_xz").outgoing == ("X", "Z")

    def test_to_dict_shape(self, table):
        data = table.to_dict()
        assert {"handle": "X", "type": "ConceptNode", "properties": {}} in data["nodes"]
        assert {
            "handle": "l_xy",
            "type": "InheritanceLink",
            "outgoing": ["X", "Y"],
            "properties": {},
        } in data["links"]

    def test_deepcopy_is_independent(self, table):
        clone = copy.deepcopy(table)
        clone.delete_atom_cascade("X")
        assert table.has_atom("X")
        assert not clone.has_atom("X")
        with clone.batch():
            clone.add_node(Node("W", "ConceptNode"))

    def test_pickle(self, table):
        restored = pickle.loads(pickle.dumps(table))
        assert sorted(lk.handle for lk in restored.incoming_set("X")) == ["l_xy", "l_xz"]
        with restored.batch():
            restored.add_node(Node("W", "ConceptNode"))

    def test_from_dict_rejects_empty_link(self):
        data = {
            "nodes": [],
            "links": [{"handle": "l", "type": "ListLink", "outgoing": [], "properties": {}}],
        }
        with pytest.raises(ValueError, match="at least one member"):
            AtomTable.from_dict(data)
