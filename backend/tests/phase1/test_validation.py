"""Tests for the document integrity validator."""

from athanor.documents.validation import validate_document
from tests.fixtures import make_document, make_valid_document


class TestValidDocuments:
    def test_valid_document(self):
        assert validate_document(make_valid_document()) == []

    def test_single_root(self):
        assert validate_document(make_document({"r": {"text": "seed"}})) == []


class TestCoreChecks:
    def test_missing_version(self):
        doc = make_valid_document()
        del doc["version"]
        assert validate_document(doc) == ["Missing version field"]

    def test_empty_version(self):
        doc = make_valid_document()
        doc["version"] = ""
        assert validate_document(doc) == ["Missing version field"]

    def test_unresolvable_root(self):
        doc = make_valid_document()
        doc["root"] = "nowhere"
        assert validate_document(doc) == [
            "Invalid root node",
            "Root node must have null parent",
        ]

    def test_missing_root(self):
        doc = make_valid_document()
        del doc["root"]
        assert validate_document(doc)[:2] == [
            "Invalid root node",
            "Root node must have null parent",
        ]

    def test_root_with_parent(self):
        doc = make_valid_document()
        doc["nodes"]["r"]["parent"] = "elsewhere"
        assert validate_document(doc) == [
            "Root node must have null parent",
            "Parent-child mismatch for node r",
        ]

    def test_dangling_child(self):
        doc = make_valid_document()
        doc["nodes"]["b"]["children"] = ["ghost"]
        assert validate_document(doc) == ["Node b references non-existent child ghost"]

    def test_one_sided_edit(self):
        """Child still points at its parent, parent forgot the child."""
        doc = make_valid_document()
        doc["nodes"]["a"]["children"] = []
        assert validate_document(doc) == [
            "Parent-child mismatch for node b",
            "Node b is not reachable from root",
        ]

    def test_duplicate_child_entry(self):
        doc = make_valid_document()
        doc["nodes"]["a"]["children"] = ["b", "b"]
        assert validate_document(doc) == ["Parent-child mismatch for node b"]

    def test_parent_missing_from_nodes(self):
        doc = make_valid_document()
        doc["nodes"]["c"]["parent"] = "ghost"
        violations = validate_document(doc)
        assert "Parent-child mismatch for node c" in violations

    def test_violations_in_check_order(self):
        doc = make_valid_document()
        del doc["version"]
        doc["nodes"]["c"]["children"] = ["ghost"]
        doc["nodes"]["a"]["children"] = []
        violations = validate_document(doc)
        assert violations[:3] == [
            "Missing version field",
            "Node c references non-existent child ghost",
            "Parent-child mismatch for node b",
        ]


class TestSupplementaryChecks:
    def test_key_id_mismatch(self):
        doc = make_valid_document()
        doc["nodes"]["c"]["id"] = "zz"
        assert validate_document(doc) == ["Node key c does not match id zz"]

    def test_child_declares_other_parent(self):
        doc = make_valid_document()
        doc["nodes"]["r"]["children"] = ["a", "c", "b"]
        assert validate_document(doc) == [
            "Node b is listed as a child of r but declares parent a",
        ]

    def test_detached_cycle(self):
        doc = make_valid_document()
        doc["nodes"]["x"] = {
            "id": "x", "text": "", "parent": "y", "children": ["y"],
            "collapsed": False, "metadata": {},
        }
        doc["nodes"]["y"] = {
            "id": "y", "text": "", "parent": "x", "children": ["x"],
            "collapsed": False, "metadata": {},
        }
        assert validate_document(doc) == [
            "Node x is not reachable from root",
            "Node y is not reachable from root",
        ]

    def test_second_parentless_node(self):
        doc = make_valid_document()
        doc["nodes"]["z"] = {"id": "z", "text": "", "parent": None, "children": []}
        assert validate_document(doc) == ["Node z is not reachable from root"]


class TestMalformedInput:
    def test_not_an_object(self):
        assert validate_document(["nope"]) == ["Document must be a JSON object"]

    def test_nodes_not_a_mapping(self):
        doc = make_valid_document()
        doc["nodes"] = []
        assert validate_document(doc) == ["Missing nodes mapping"]

    def test_node_entry_not_an_object(self):
        doc = make_valid_document()
        doc["nodes"]["c"] = "oops"
        violations = validate_document(doc)
        assert "Node c is not an object" in violations

    def test_non_string_child_ids_ignored(self):
        doc = make_valid_document()
        doc["nodes"]["c"]["children"] = [{"id": "x"}]
        assert validate_document(doc) == []

    def test_non_string_parent_is_a_mismatch(self):
        doc = make_valid_document()
        doc["nodes"]["c"]["parent"] = ["x"]
        assert validate_document(doc) == ["Parent-child mismatch for node c"]

    def test_mapping_parent_is_a_mismatch(self):
        doc = make_valid_document()
        doc["nodes"]["b"]["parent"] = {"id": "a"}
        assert validate_document(doc) == ["Parent-child mismatch for node b"]

    def test_root_without_parent_key(self):
        doc = make_valid_document()
        del doc["nodes"]["r"]["parent"]
        assert validate_document(doc) == ["Root node must have null parent"]
