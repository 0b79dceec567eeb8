"""Async client for the Granola HTTP API."""

from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from .errors import ApiError
from .filters import apply_filters, find_folder, sort_by_recency
from .types import (
    Folder,
    ListOptions,
    Meeting,
    Person,
    TranscriptSegment,
    Workspace,
)

API_BASE = "https://api.granola.ai"


class ApiClient:
    """Thin wrapper over Granola's JSON-over-POST endpoints.

    Every call is a single awaited request carrying the bearer token; a
    non-2xx response raises :class:`ApiError` with the status and body.
    Use as an async context manager so the connection pool is closed.
    """

    def __init__(
        self,
        token: str,
        base_url: str = API_BASE,
        timeout: float | None = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout or None,
            transport=transport,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _post(self, path: str, body: dict[str, Any] | None = None) -> Any:
        payload = {k: v for k, v in (body or {}).items() if v is not None}
        logger.debug("POST {} {}", path, payload)
        response = await self.client.post(path, json=payload)

        if not response.is_success:
            try:
                text = response.text
            except (httpx.HTTPError, httpx.StreamError, UnicodeDecodeError):
                text = ""
            raise ApiError(response.status_code, text, response.reason_phrase)

        return response.json()

    async def get_documents(
        self,
        limit: int | None = None,
        cursor: str | None = None,
        workspace_id: str | None = None,
        include_last_viewed_panel: bool = False,
    ) -> dict[str, Any]:
        """One page of documents: ``{"docs": [...], "next_cursor": ...}``."""
        data = await self._post(
            "/v2/get-documents",
            {
                "limit": limit,
                "cursor": cursor,
                "workspace_id": workspace_id,
                "include_last_viewed_panel": include_last_viewed_panel,
            },
        )
        return data if isinstance(data, dict) else {}

    async def get_meeting(self, meeting_id: str) -> Meeting:
        data = await self._post(
            "/v1/get-document-metadata", {"document_id": meeting_id}
        )
        if isinstance(data, dict) and not data.get("id"):
            data = {**data, "id": meeting_id}
        return Meeting.model_validate(data)

    async def get_transcript(self, meeting_id: str) -> list[TranscriptSegment]:
        data = await self._post(
            "/v1/get-document-transcript", {"document_id": meeting_id}
        )
        if isinstance(data, dict):
            data = data.get("transcript") or []
        if not isinstance(data, list):
            return []
        return [TranscriptSegment.model_validate(s) for s in data if isinstance(s, dict)]

    async def get_folders(self) -> list[Folder]:
        data = await self._post("/v2/get-document-lists")
        if isinstance(data, dict):
            data = data.get("lists") or data.get("document_lists") or []
        return [Folder.from_api(f) for f in data if isinstance(f, dict) and f.get("id")]

    async def get_people(self) -> list[Person]:
        data = await self._post("/v1/get-people")
        if isinstance(data, dict):
            data = data.get("people") or []
        return [Person.model_validate(p) for p in data if isinstance(p, dict)]

    async def get_workspaces(self) -> list[Workspace]:
        data = await self._post("/v1/get-workspaces")
        entries = data.get("workspaces") if isinstance(data, dict) else data
        return [Workspace.model_validate(e) for e in entries or [] if isinstance(e, dict)]

    async def trigger_sync(self) -> None:
        """Ask Granola to re-ingest calendar events upstream."""
        await self._post("/v1/refresh-google-events")

    async def get_last_viewed_panel(self, meeting_id: str, limit: int = 200) -> Any:
        """Rich-text summary for a meeting from a recent documents page."""
        page = await self.get_documents(limit=limit, include_last_viewed_panel=True)
        for raw in page.get("docs") or []:
            if isinstance(raw, dict) and raw.get("id") == meeting_id:
                panel = raw.get("last_viewed_panel")
                if isinstance(panel, dict):
                    return panel.get("content") or None
        return None


def _parse_page(page: dict[str, Any]) -> list[Meeting]:
    docs: list[Meeting] = []
    for raw in page.get("docs") or []:
        if not isinstance(raw, dict) or not raw.get("id"):
            continue
        try:
            docs.append(Meeting.model_validate(raw))
        except ValidationError as e:
            logger.warning("Skipping document {}: {}", raw["id"], e)
    return docs


async def list_from_api(
    client: ApiClient, options: ListOptions, page_size: int = 100
) -> list[Meeting]:
    """Page through documents until *limit* matches are collected.

    Every fetched page is filtered; the final sort and cut to *limit*
    happen after the whole sweep.
    """
    members: set[str] | None = None
    if options.folder:
        folder = find_folder(await client.get_folders(), options.folder)
        if folder is None:
            return []
        members = set(folder.document_ids)

    results: list[Meeting] = []
    cursor: str | None = None
    while len(results) < options.limit:
        page = await client.get_documents(
            limit=page_size,
            cursor=cursor,
            workspace_id=options.workspace,
        )
        results.extend(apply_filters(_parse_page(page), options, members))
        cursor = page.get("next_cursor")
        if not cursor:
            break

    return sort_by_recency(results)[: options.limit]
