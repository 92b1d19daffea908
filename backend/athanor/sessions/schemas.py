"""Request and response schemas for loom session endpoints.

Node payloads are returned in the document's node shape (``LoomNode``,
camelCase keys) so renderers can share one parser for both.
"""

from pydantic import BaseModel, Field

from athanor.models import GenerationParams, LoomNode

# -- Requests --


class CreateSessionRequest(BaseModel):
    seed_text: str = ""
    title: str | None = None
    description: str | None = None


class AddNodeRequest(BaseModel):
    """Add a continuation. Without parent_id the node goes under the selection."""

    text: str
    parent_id: str | None = None
    select: bool = False
    model: str | None = None
    params: GenerationParams | None = None


class PatchNodeTextRequest(BaseModel):
    text: str


class SelectNodeRequest(BaseModel):
    node_id: str


class CollapseNodeRequest(BaseModel):
    collapsed: bool


class WeaveRequest(BaseModel):
    provider: str = "openrouter"
    model: str | None = None
    n: int | None = Field(default=None, ge=1, le=10)
    params: GenerationParams | None = None


# -- Responses --


class SessionSummary(BaseModel):
    session_id: str
    title: str | None = None
    description: str | None = None
    total_nodes: int
    root_id: str | None = None
    selected_node_id: str | None = None
    created_at: str


class SessionDetailResponse(SessionSummary):
    selected_path: str = ""
    nodes: list[LoomNode] = Field(default_factory=list)


class DeleteNodeResponse(BaseModel):
    deleted_node_ids: list[str]
    selected_node_id: str | None = None


class PathResponse(BaseModel):
    node_id: str
    depth: int
    text: str


class SearchResponse(BaseModel):
    term: str
    node_ids: list[str]


class SnapshotResponse(BaseModel):
    snapshot_id: int
    session_id: str
    title: str | None = None
    total_nodes: int
    saved_at: str
