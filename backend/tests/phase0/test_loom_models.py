"""Contract tests for the canonical data structures and their document aliases."""

from datetime import UTC, datetime

from athanor.models import (
    DOCUMENT_VERSION,
    DocumentMetadata,
    GenerationParams,
    LoomDocument,
    LoomNode,
    NodeMetadata,
    TreeStats,
)


class TestGenerationParams:
    def test_all_fields_optional(self):
        p = GenerationParams()
        assert p.model_dump() == {
            "temperature": None,
            "max_tokens": None,
            "top_p": None,
            "top_k": None,
            "frequency_penalty": None,
            "presence_penalty": None,
        }

    def test_accepts_camel_case_keys(self):
        p = GenerationParams.model_validate({"maxTokens": 128, "topP": 0.5})
        assert p.max_tokens == 128
        assert p.top_p == 0.5


class TestNodeMetadata:
    def test_defaults(self):
        m = NodeMetadata()
        assert m.edited is False
        assert m.edited_at is None
        assert m.model is None
        assert m.created.tzinfo is not None

    def test_from_generation_flattens_params(self):
        params = GenerationParams(temperature=0.9, top_k=40, presence_penalty=0.1)
        m = NodeMetadata.from_generation("meta-llama/llama-3.1-405b", params)
        assert m.model == "meta-llama/llama-3.1-405b"
        assert m.temperature == 0.9
        assert m.top_k == 40
        assert m.presence_penalty == 0.1
        assert m.max_tokens is None

    def test_from_generation_without_params(self):
        m = NodeMetadata.from_generation("some-model")
        assert m.model == "some-model"
        assert m.temperature is None

    def test_generation_params_roundtrip(self):
        params = GenerationParams(temperature=0.3, max_tokens=64)
        m = NodeMetadata.from_generation("x", params)
        assert m.generation_params() == params

    def test_dump_uses_document_keys(self):
        data = NodeMetadata(edited=True).model_dump(mode="json", by_alias=True)
        assert set(data) == {
            "created", "model", "temperature", "maxTokens", "topP", "topK",
            "frequencyPenalty", "presencePenalty", "edited", "editedAt",
        }


class TestLoomNode:
    def test_root_node(self):
        node = LoomNode(id="r", text="seed")
        assert node.is_root
        assert node.children == []
        assert node.collapsed is False

    def test_children_lists_are_independent(self):
        a = LoomNode(id="a", text="")
        b = LoomNode(id="b", text="")
        a.children.append("x")
        assert b.children == []


class TestLoomDocument:
    def test_default_version(self):
        now = datetime.now(UTC)
        doc = LoomDocument(
            root="r",
            nodes={"r": LoomNode(id="r", text="seed")},
            metadata=DocumentMetadata(created=now, modified=now, total_nodes=1),
        )
        assert doc.version == DOCUMENT_VERSION

    def test_metadata_aliases(self):
        now = datetime.now(UTC)
        meta = DocumentMetadata(created=now, modified=now, total_nodes=3, title="T")
        data = meta.model_dump(by_alias=True)
        assert data["totalNodes"] == 3
        assert data["title"] == "T"
        assert data["description"] is None


class TestTreeStats:
    def test_dump_by_alias(self):
        stats = TreeStats(total_nodes=2, root_id="r", selected_node_id="c")
        assert stats.model_dump(by_alias=True) == {
            "totalNodes": 2, "rootId": "r", "selectedNodeId": "c",
        }
