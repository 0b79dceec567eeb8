"""Cache loading and Granola JSON parsing."""

import json
import os
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from .errors import CacheNotFoundError
from .filters import apply_filters, find_folder, sort_by_recency
from .types import (
    CacheState,
    Folder,
    ListOptions,
    Meeting,
    Panel,
    Person,
    TranscriptSegment,
    Workspace,
)


def _unwrap_cache(raw_data: dict[str, Any]) -> dict[str, Any]:
    """Unwrap Granola's nested JSON-string-inside-JSON format.

    The real file looks like ``{"cache": "<json>"}`` where the inner
    document holds the state under ``state``.  Flat-format caches are
    returned as-is.
    """
    if "cache" not in raw_data:
        return raw_data
    inner = raw_data["cache"]
    if isinstance(inner, str):
        inner = json.loads(inner)
    if not isinstance(inner, dict):
        return {}
    return inner.get("state") or {}


def _parse_documents(documents_raw: Any) -> dict[str, Meeting]:
    documents: dict[str, Meeting] = {}
    if not isinstance(documents_raw, dict):
        return documents

    for doc_id, data in documents_raw.items():
        if not isinstance(data, dict):
            continue
        try:
            documents[doc_id] = Meeting.model_validate(
                {**data, "id": data.get("id") or doc_id}
            )
        except ValidationError as e:
            logger.warning("Skipping document {}: {}", doc_id, e)

    return documents


def _parse_transcripts(
    transcripts_raw: Any,
) -> dict[str, list[TranscriptSegment]]:
    """Parse Granola transcripts (list-of-segments format)."""
    transcripts: dict[str, list[TranscriptSegment]] = {}
    if not isinstance(transcripts_raw, dict):
        return transcripts

    for doc_id, data in transcripts_raw.items():
        if not isinstance(data, list):
            continue
        segments: list[TranscriptSegment] = []
        for segment in data:
            if not isinstance(segment, dict):
                continue
            try:
                segments.append(TranscriptSegment.model_validate(segment))
            except ValidationError as e:
                logger.warning("Skipping transcript segment in {}: {}", doc_id, e)
        transcripts[doc_id] = segments

    return transcripts


def _parse_panels(panels_raw: Any) -> dict[str, dict[str, Panel]]:
    panels: dict[str, dict[str, Panel]] = {}
    if not isinstance(panels_raw, dict):
        return panels

    for doc_id, panel_dict in panels_raw.items():
        if isinstance(panel_dict, dict):
            panels[doc_id] = {
                panel_id: Panel.model_validate(panel)
                for panel_id, panel in panel_dict.items()
                if isinstance(panel, dict)
            }

    return panels


def _parse_people(people_raw: Any) -> dict[str, Person]:
    if not isinstance(people_raw, dict):
        return {}
    people: dict[str, Person] = {}
    for person_id, data in people_raw.items():
        if not isinstance(data, dict):
            continue
        try:
            people[person_id] = Person.model_validate(data)
        except ValidationError as e:
            logger.warning("Skipping person {}: {}", person_id, e)
    return people


def _dict_of(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def load_cache(cache_path: str) -> CacheState:
    """Load and parse the Granola cache file.

    Args:
        cache_path: Path to the Granola cache JSON file.

    Raises:
        CacheNotFoundError: the file does not exist.
        json.JSONDecodeError: the file is not valid JSON.
    """
    path = Path(cache_path)
    if not path.exists():
        raise CacheNotFoundError(cache_path)

    with open(path, "r", encoding="utf-8") as f:
        raw_data = json.load(f)

    state = _unwrap_cache(_dict_of(raw_data))

    return CacheState(
        documents=_parse_documents(state.get("documents")),
        transcripts=_parse_transcripts(state.get("transcripts")),
        panels=_parse_panels(state.get("documentPanels")),
        folder_members={
            k: [i for i in v if isinstance(i, str)]
            for k, v in _dict_of(state.get("documentLists")).items()
            if isinstance(v, list)
        },
        folder_metadata={
            k: v
            for k, v in _dict_of(state.get("documentListsMetadata")).items()
            if isinstance(v, dict)
        },
        people=_parse_people(state.get("people")),
        workspace_data=_dict_of(state.get("workspaceData")),
        shared_documents=_parse_documents(
            {
                k: v
                for k, v in _dict_of(state.get("sharedDocuments")).items()
                if isinstance(v, dict) and v.get("id")
            }
        ),
    )


def get_cache_mtime(cache_path: str) -> float:
    """Return the modification time of the cache file, or 0.0 if missing."""
    try:
        return os.path.getmtime(cache_path)
    except OSError:
        return 0.0


def get_cache_meta(cache_path: str) -> dict[str, Any]:
    """Describe the cache file for the ``cache`` command."""
    if not Path(cache_path).exists():
        return {"path": cache_path, "exists": False}
    return {"path": cache_path, "exists": True, "mtime": get_cache_mtime(cache_path)}


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def get_meetings(state: CacheState) -> list[Meeting]:
    """All live (untrashed) meetings, in file order."""
    return [doc for doc in state.documents.values() if doc.is_meeting]


def get_meeting_by_id(state: CacheState, meeting_id: str) -> Meeting | None:
    return state.documents.get(meeting_id)


def get_transcript(state: CacheState, meeting_id: str) -> list[TranscriptSegment] | None:
    return state.transcripts.get(meeting_id)


def get_enhanced_panel(state: CacheState, meeting_id: str) -> Any:
    """Content of the first panel stored for a meeting, or ``None``."""
    panels = state.panels.get(meeting_id)
    if not panels:
        return None
    first = next(iter(panels.values()))
    return first.content or None


def get_folders(state: CacheState) -> list[Folder]:
    """Folders that are not soft-deleted, sorted by title."""
    folders: list[Folder] = []
    for folder_id, meta in state.folder_metadata.items():
        if meta.get("deleted_at"):
            continue
        fid = meta.get("id") or folder_id
        folders.append(
            Folder(
                id=fid,
                title=meta.get("title") or meta.get("name") or "(untitled)",
                document_ids=state.folder_members.get(fid, []),
                visibility=meta.get("visibility"),
                is_shared=meta.get("is_shared"),
            )
        )
    return sorted(folders, key=lambda f: f.title.casefold())


def get_meetings_by_folder(state: CacheState, folder_id_or_name: str) -> list[Meeting]:
    """Meetings in the folder matched by id or title; empty when unmatched."""
    folder = find_folder(get_folders(state), folder_id_or_name)
    if folder is None:
        return []
    members = set(folder.document_ids)
    return sort_by_recency(m for m in get_meetings(state) if m.id in members)


def get_people(state: CacheState) -> list[Person]:
    return [p for p in state.people.values() if p.name]


def get_workspaces(state: CacheState) -> list[Workspace]:
    entries = state.workspace_data.get("workspaces") or []
    return [Workspace.model_validate(e) for e in entries if isinstance(e, dict)]


def get_shared_meetings(state: CacheState) -> list[Meeting]:
    return list(state.shared_documents.values())


def list_from_cache(state: CacheState, options: ListOptions) -> list[Meeting]:
    """Answer a listing from the cache with the shared filter rules."""
    if options.folder:
        meetings = get_meetings_by_folder(state, options.folder)
    else:
        meetings = get_meetings(state)

    matched = apply_filters(meetings, options)
    return sort_by_recency(matched)[: options.limit]
