"""FastAPI routes for loom sessions: node CRUD, selection, layout, documents, weaving."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from athanor.documents.legacy import DocumentFormatError
from athanor.documents.service import DocumentValidationError, document_to_dict
from athanor.documents.store import DocumentStore
from athanor.generation.service import WeaveService
from athanor.layout.engine import TreeLayout
from athanor.models import LoomNode, NodeMetadata, TreeStats
from athanor.providers.base import ProviderError
from athanor.providers.registry import ProviderNotFoundError, get_provider
from athanor.sessions.schemas import (
    AddNodeRequest,
    CollapseNodeRequest,
    CreateSessionRequest,
    DeleteNodeResponse,
    PatchNodeTextRequest,
    PathResponse,
    SearchResponse,
    SelectNodeRequest,
    SessionDetailResponse,
    SessionSummary,
    SnapshotResponse,
    WeaveRequest,
)
from athanor.sessions.service import LoomSession, SessionNotFoundError, SessionService
from athanor.trees.engine import InvalidOperationError, NodeNotFoundError

router = APIRouter(prefix="/api/looms", tags=["looms"])


def get_session_service() -> SessionService:
    """Dependency placeholder, replaced at app startup."""
    raise RuntimeError("SessionService not initialized")


def get_document_store() -> DocumentStore:
    """Dependency placeholder, replaced at app startup."""
    raise RuntimeError("DocumentStore not initialized")


def get_weave_service() -> WeaveService:
    """Dependency placeholder, replaced at app startup."""
    raise RuntimeError("WeaveService not initialized")


# -- Sessions --


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_session(
    request: CreateSessionRequest,
    service: SessionService = Depends(get_session_service),
) -> SessionDetailResponse:
    session = service.create_session(
        request.seed_text, title=request.title, description=request.description
    )
    return _session_detail(session)


@router.get("")
async def list_sessions(
    service: SessionService = Depends(get_session_service),
) -> list[SessionSummary]:
    return [_session_summary(s) for s in service.list_sessions()]


@router.post("/import", status_code=status.HTTP_201_CREATED)
async def import_session(
    document: dict[str, Any] = Body(...),
    service: SessionService = Depends(get_session_service),
) -> SessionDetailResponse:
    """Open an exported (or legacy) document as a new session."""
    try:
        session = service.open_document(document)
    except DocumentValidationError as e:
        raise HTTPException(status_code=422, detail=e.violations)
    except DocumentFormatError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _session_detail(session)


@router.get("/{session_id}")
async def get_session(
    session_id: str,
    service: SessionService = Depends(get_session_service),
) -> SessionDetailResponse:
    try:
        return _session_detail(service.get_session(session_id))
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(
    session_id: str,
    service: SessionService = Depends(get_session_service),
) -> None:
    try:
        service.close_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")


@router.get("/{session_id}/stats")
async def get_stats(
    session_id: str,
    service: SessionService = Depends(get_session_service),
) -> TreeStats:
    try:
        return service.get_session(session_id).tree.get_stats()
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")


# -- Nodes --


@router.get("/{session_id}/nodes/{node_id}")
async def get_node(
    session_id: str,
    node_id: str,
    service: SessionService = Depends(get_session_service),
) -> LoomNode:
    try:
        node = service.get_session(session_id).tree.get_node(node_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    if node is None:
        raise HTTPException(status_code=404, detail=f"Node not found: {node_id}")
    return node


@router.get("/{session_id}/nodes/{node_id}/children")
async def get_children(
    session_id: str,
    node_id: str,
    service: SessionService = Depends(get_session_service),
) -> list[LoomNode]:
    try:
        return service.get_session(session_id).tree.get_children(node_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")


@router.get("/{session_id}/nodes/{node_id}/path")
async def get_full_path(
    session_id: str,
    node_id: str,
    service: SessionService = Depends(get_session_service),
) -> PathResponse:
    try:
        tree = service.get_session(session_id).tree
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    if tree.get_node(node_id) is None:
        raise HTTPException(status_code=404, detail=f"Node not found: {node_id}")
    return PathResponse(
        node_id=node_id, depth=tree.depth(node_id), text=tree.get_full_path(node_id)
    )


@router.post("/{session_id}/nodes", status_code=status.HTTP_201_CREATED)
async def add_node(
    session_id: str,
    request: AddNodeRequest,
    service: SessionService = Depends(get_session_service),
) -> LoomNode:
    metadata = None
    if request.model is not None or request.params is not None:
        metadata = NodeMetadata.from_generation(request.model, request.params)
    try:
        if request.parent_id is None:
            node = await service.add_to_selected(session_id, request.text, metadata)
        else:
            node = await service.add_node(
                session_id,
                request.parent_id,
                request.text,
                metadata,
                select=request.select,
            )
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    except NodeNotFoundError as e:
        raise HTTPException(status_code=404, detail=f"Node not found: {e.node_id}")
    except InvalidOperationError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return node


@router.patch("/{session_id}/nodes/{node_id}/text")
async def update_node_text(
    session_id: str,
    node_id: str,
    request: PatchNodeTextRequest,
    service: SessionService = Depends(get_session_service),
) -> LoomNode:
    try:
        return await service.update_text(session_id, node_id, request.text)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    except NodeNotFoundError:
        raise HTTPException(status_code=404, detail=f"Node not found: {node_id}")


@router.patch("/{session_id}/nodes/{node_id}/collapsed")
async def set_collapsed(
    session_id: str,
    node_id: str,
    request: CollapseNodeRequest,
    service: SessionService = Depends(get_session_service),
) -> LoomNode:
    try:
        return await service.set_collapsed(session_id, node_id, request.collapsed)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    except NodeNotFoundError:
        raise HTTPException(status_code=404, detail=f"Node not found: {node_id}")


@router.delete("/{session_id}/nodes/{node_id}")
async def delete_node(
    session_id: str,
    node_id: str,
    service: SessionService = Depends(get_session_service),
) -> DeleteNodeResponse:
    try:
        deleted = await service.delete_node(session_id, node_id)
        selected = service.get_session(session_id).tree.selected_node_id
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    except NodeNotFoundError:
        raise HTTPException(status_code=404, detail=f"Node not found: {node_id}")
    except InvalidOperationError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return DeleteNodeResponse(deleted_node_ids=deleted, selected_node_id=selected)


@router.put("/{session_id}/selection")
async def select_node(
    session_id: str,
    request: SelectNodeRequest,
    service: SessionService = Depends(get_session_service),
) -> LoomNode:
    try:
        return await service.select_node(session_id, request.node_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    except NodeNotFoundError:
        raise HTTPException(status_code=404, detail=f"Node not found: {request.node_id}")


# -- Derived views --


@router.get("/{session_id}/search")
async def search_nodes(
    session_id: str,
    q: str = Query(""),
    service: SessionService = Depends(get_session_service),
) -> SearchResponse:
    try:
        node_ids = service.get_session(session_id).tree.search(q)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return SearchResponse(term=q, node_ids=node_ids)


@router.get("/{session_id}/layout")
async def get_layout(
    session_id: str,
    service: SessionService = Depends(get_session_service),
) -> TreeLayout:
    try:
        return service.layout(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")


@router.get("/{session_id}/paths")
async def get_leaf_paths(
    session_id: str,
    service: SessionService = Depends(get_session_service),
) -> dict:
    """Get all root-to-leaf paths in the tree."""
    try:
        paths = service.get_session(session_id).tree.get_leaf_paths()
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return {"paths": paths}


# -- Documents --


@router.get("/{session_id}/export")
async def export_session(
    session_id: str,
    service: SessionService = Depends(get_session_service),
) -> dict:
    try:
        return document_to_dict(service.export(session_id))
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")


@router.put("/{session_id}/document")
async def replace_document(
    session_id: str,
    document: dict[str, Any] = Body(...),
    service: SessionService = Depends(get_session_service),
) -> SessionDetailResponse:
    """Replace the session's tree with an imported document."""
    try:
        session = await service.replace_document(session_id, document)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    except DocumentValidationError as e:
        raise HTTPException(status_code=422, detail=e.violations)
    except DocumentFormatError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _session_detail(session)


@router.post("/{session_id}/snapshots", status_code=status.HTTP_201_CREATED)
async def save_snapshot(
    session_id: str,
    service: SessionService = Depends(get_session_service),
    store: DocumentStore = Depends(get_document_store),
) -> SnapshotResponse:
    try:
        document = service.export(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    snapshot_id = await store.save(session_id, document)
    return SnapshotResponse(**await store.get_snapshot(snapshot_id))


@router.get("/{session_id}/snapshots")
async def list_snapshots(
    session_id: str,
    store: DocumentStore = Depends(get_document_store),
) -> list[SnapshotResponse]:
    return [SnapshotResponse(**s) for s in await store.list_snapshots(session_id)]


@router.post("/{session_id}/snapshots/restore")
async def restore_snapshot(
    session_id: str,
    service: SessionService = Depends(get_session_service),
    store: DocumentStore = Depends(get_document_store),
) -> SessionDetailResponse:
    """Reload the newest saved snapshot into the session."""
    document = await store.latest(session_id)
    if document is None:
        raise HTTPException(status_code=404, detail=f"No snapshot for session: {session_id}")
    try:
        session = await service.replace_document(session_id, document)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    except DocumentValidationError as e:
        raise HTTPException(status_code=422, detail=e.violations)
    except DocumentFormatError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _session_detail(session)


# -- Generation --


@router.post("/{session_id}/nodes/{node_id}/weave", status_code=status.HTTP_201_CREATED)
async def weave(
    session_id: str,
    node_id: str,
    request: WeaveRequest,
    weave_service: WeaveService = Depends(get_weave_service),
) -> list[LoomNode]:
    try:
        provider = get_provider(request.provider)
    except ProviderNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))
    try:
        return await weave_service.weave(
            session_id,
            node_id,
            provider,
            n=request.n,
            model=request.model,
            params=request.params,
        )
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    except NodeNotFoundError:
        raise HTTPException(status_code=404, detail=f"Node not found: {node_id}")
    except ProviderError as e:
        raise HTTPException(status_code=502, detail=str(e))


# -- Helpers --


def _session_summary(session: LoomSession) -> SessionSummary:
    stats = session.tree.get_stats()
    return SessionSummary(
        session_id=session.session_id,
        title=session.title,
        description=session.description,
        total_nodes=stats.total_nodes,
        root_id=stats.root_id,
        selected_node_id=stats.selected_node_id,
        created_at=session.created_at.isoformat(),
    )


def _session_detail(session: LoomSession) -> SessionDetailResponse:
    summary = _session_summary(session)
    return SessionDetailResponse(
        **summary.model_dump(),
        selected_path=session.tree.selected_path,
        nodes=list(session.tree.iter_breadth_first()),
    )
