"""Weave service: asks a provider for continuations and records them as children."""

import asyncio
import logging

from athanor.config import Settings
from athanor.models import GenerationParams, LoomNode, NodeMetadata
from athanor.providers.base import CompletionProvider, CompletionRequest
from athanor.sessions.service import SessionService
from athanor.trees.engine import NodeNotFoundError

logger = logging.getLogger(__name__)


class WeaveService:
    """Generates N alternative continuations of a node's passage."""

    def __init__(self, sessions: SessionService, settings: Settings | None = None) -> None:
        self._sessions = sessions
        self._settings = settings or Settings()

    async def weave(
        self,
        session_id: str,
        node_id: str,
        provider: CompletionProvider,
        *,
        n: int | None = None,
        model: str | None = None,
        params: GenerationParams | None = None,
    ) -> list[LoomNode]:
        """Continue the passage ending at ``node_id`` ``n`` times in parallel.

        The prompt is the node's full path. Results are attached as new
        children of ``node_id`` in the order the requests were issued.
        """
        session = self._sessions.get_session(session_id)
        if session.tree.get_node(node_id) is None:
            raise NodeNotFoundError(node_id)

        resolved_n = n or self._settings.interface.default_generation_count
        resolved_model = model or self._settings.api.model_name
        resolved_params = self._resolve_params(params)

        request = CompletionRequest(
            model=resolved_model,
            prompt=session.tree.get_full_path(node_id),
            params=resolved_params,
        )
        results = await asyncio.gather(
            *[provider.complete(request) for _ in range(resolved_n)]
        )
        logger.debug(
            "Wove %d continuation(s) of %s with %s", len(results), node_id, provider.name
        )

        return await self._sessions.add_children(
            session_id,
            node_id,
            [
                (result.text, NodeMetadata.from_generation(result.model, resolved_params))
                for result in results
            ],
        )

    def _resolve_params(self, params: GenerationParams | None) -> GenerationParams:
        """Request values win; unset fields fall back to configured defaults."""
        defaults = self._settings.generation.to_params()
        if params is None:
            return defaults
        return defaults.model_copy(update=params.model_dump(exclude_none=True))
