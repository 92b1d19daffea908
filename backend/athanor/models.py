"""Canonical data structures for Athanor Loom.

Defined once here, referenced everywhere else. Python code uses snake_case
field names; the exchanged document format uses camelCase keys, produced by
the shared alias generator (``model_dump(by_alias=True)``).
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DOCUMENT_VERSION = "1.0"


def utcnow() -> datetime:
    return datetime.now(UTC)


class CamelModel(BaseModel):
    """Base for every model that appears in the document format."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Generation parameters
# ---------------------------------------------------------------------------


class GenerationParams(CamelModel):
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    top_k: int | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


class NodeMetadata(CamelModel):
    created: datetime = Field(default_factory=utcnow)
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    top_k: int | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    edited: bool = False
    edited_at: datetime | None = None

    @classmethod
    def from_generation(
        cls, model: str | None, params: GenerationParams | None = None
    ) -> "NodeMetadata":
        """Record which model and sampling parameters produced a node's text."""
        values = params.model_dump() if params is not None else {}
        return cls(model=model, **values)

    def generation_params(self) -> GenerationParams:
        return GenerationParams(
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            top_p=self.top_p,
            top_k=self.top_k,
            frequency_penalty=self.frequency_penalty,
            presence_penalty=self.presence_penalty,
        )


class LoomNode(CamelModel):
    """A single fragment of narrative text plus its structural links."""

    id: str
    text: str
    parent: str | None = None
    children: list[str] = Field(default_factory=list)
    collapsed: bool = False  # display hint only
    metadata: NodeMetadata = Field(default_factory=NodeMetadata)

    @property
    def is_root(self) -> bool:
        return self.parent is None


class TreeStats(CamelModel):
    total_nodes: int
    root_id: str | None = None
    selected_node_id: str | None = None


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class DocumentMetadata(CamelModel):
    created: datetime
    modified: datetime
    total_nodes: int
    title: str | None = None
    description: str | None = None


class LoomDocument(CamelModel):
    """The versioned, portable snapshot of a whole tree."""

    version: str = DOCUMENT_VERSION
    root: str
    nodes: dict[str, LoomNode]
    metadata: DocumentMetadata
