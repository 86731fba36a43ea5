"""HTTP dispatch of single video IDs to the comment-parsing endpoint."""

from __future__ import annotations

from typing import Dict, Optional

import httpx
from rich.console import Console
from rich.markup import escape

from backfill.config.settings import RunnerConfig
from backfill.utils.progress import DispatchOutcome


class EndpointDispatcher:
    """Post ``{item_key: video_id}`` to the configured endpoint with a bearer token.

    Transport and protocol errors are turned into failure outcomes, so concurrent dispatches in a
    batch never unwind into the runner. The dispatcher holds no mutable state of its own.
    """

    def __init__(
        self,
        config: RunnerConfig,
        *,
        client: httpx.AsyncClient,
        console: Optional[Console] = None,
    ) -> None:
        self._config = config
        self._client = client
        self._console = console or Console()

    @staticmethod
    def create_client(
        config: RunnerConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> httpx.AsyncClient:
        """Build an :class:`httpx.AsyncClient` honouring the configured request timeout."""

        return httpx.AsyncClient(timeout=config.request_timeout_seconds, transport=transport)

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._config.auth_token.get_secret_value()}",
        }

    async def dispatch(self, video_id: str) -> DispatchOutcome:
        if self._config.debug:
            self._console.log(f"  {video_id} - starting request")

        try:
            response = await self._client.post(
                self._config.endpoint_url,
                json={self._config.item_key: video_id},
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            reason = f"{exc.__class__.__name__}: {exc}".rstrip(": ")
            self._console.log(f"  [red]x[/red] {video_id} - {escape(reason)}")
            return DispatchOutcome.failure(video_id, reason)

        if response.is_success:
            self._console.log(f"  [green]ok[/green] {video_id}")
            return DispatchOutcome.success(video_id, status_code=response.status_code)

        reason = f"HTTP {response.status_code}: {response.reason_phrase}".rstrip(": ")
        self._console.log(f"  [red]x[/red] {video_id} - {escape(reason)}")
        return DispatchOutcome.failure(video_id, reason, status_code=response.status_code)


__all__ = ["EndpointDispatcher"]
