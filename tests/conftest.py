"""Shared fixtures for tests."""

import json
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from granola_cli.api import ApiClient
from granola_cli.cache import load_cache
from granola_cli.types import CacheState

SUMMARY_DOC: dict = {
    "type": "doc",
    "content": [
        {
            "type": "heading",
            "attrs": {"level": 3},
            "content": [{"type": "text", "text": "Roadmap"}],
        },
        {
            "type": "bulletList",
            "content": [
                {
                    "type": "listItem",
                    "content": [
                        {
                            "type": "paragraph",
                            "content": [{"type": "text", "text": "Ship the beta"}],
                        }
                    ],
                }
            ],
        },
    ],
}

# Sample data matching Granola's real cache state (documents keyed by id,
# transcripts as segment lists, panels keyed by document then panel id).
SAMPLE_STATE: dict = {
    "documents": {
        "a1": {
            "id": "a1",
            "title": "Standup",
            "type": "meeting",
            "created_at": "2024-01-08T09:00:00Z",
            "updated_at": "2024-01-10T09:00:00Z",
            "workspace_id": "ws1",
            "notes_markdown": "Discussed the roadmap",
            "people": [{"name": "Alice", "email": "alice@example.com"}],
        },
        "b2": {
            "id": "b2",
            "title": "1:1 with Sam",
            "type": "meeting",
            "updated_at": "2024-01-12T09:00:00Z",
            "was_trashed": True,
        },
        "c3": {
            "id": "c3",
            "title": "Sales pipeline review",
            "type": "meeting",
            "created_at": "2024-02-01T09:00:00Z",
            "updated_at": "2024-02-02T09:00:00Z",
            "notes_plain": "Q1 targets",
            "people": {
                "creator": {"name": "Bob", "email": "bob@corp.com"},
                "attendees": [{"name": "Carol", "email": "carol@client.io"}],
            },
        },
        "d4": {
            "id": "d4",
            "title": "Undated sync",
            "type": "meeting",
            "google_calendar_event": {
                "attendees": [{"displayName": "Dana", "email": "dana@x.com"}]
            },
        },
        "n5": {
            "id": "n5",
            "title": "Personal note",
            "type": "note",
            "created_at": "2024-03-01T09:00:00Z",
        },
    },
    "transcripts": {
        "a1": [
            {"text": "hi", "source": "microphone", "start_timestamp": "00:00:01"},
            {"text": "hello", "source": "system"},
        ],
        "ghost": [{"text": "orphaned segment"}],
    },
    "documentPanels": {
        "a1": {
            "p1": {"id": "p1", "content": SUMMARY_DOC},
            "p2": {
                "id": "p2",
                "content": {
                    "type": "doc",
                    "content": [
                        {
                            "type": "paragraph",
                            "content": [{"type": "text", "text": "Second panel"}],
                        }
                    ],
                },
            },
        },
        "ghost": {"p9": {"content": {"type": "doc", "content": []}}},
    },
    "documentLists": {"f1": ["c3", "ghost"], "f2": ["a1"]},
    "documentListsMetadata": {
        "f1": {"id": "f1", "title": "Sales", "visibility": "team", "is_shared": True},
        "f2": {"id": "f2", "title": "engineering"},
        "f3": {"id": "f3", "title": "Archive", "deleted_at": "2024-01-01T00:00:00Z"},
    },
    "people": {
        "p1": {"name": "Alice", "email": "alice@example.com", "company": "Acme"},
        "p2": {"email": "noname@example.com"},
    },
    "workspaceData": {
        "workspaces": [
            {"workspace": {"workspace_id": "ws1", "display_name": "Acme"}, "role": "admin"}
        ]
    },
    "sharedDocuments": {
        "s1": {"id": "s1", "title": "Shared deck", "type": "meeting"},
        "s2": {"title": "Missing id"},
    },
}


# The same data wrapped in Granola's real nested JSON-string format.
SAMPLE_CACHE_NESTED: dict = {
    "cache": json.dumps({"state": SAMPLE_STATE, "version": 3}),
}


@pytest.fixture
def sample_cache_path(tmp_path: Path) -> Path:
    """Write the nested (real Granola) cache format to a temp file."""
    path = tmp_path / "cache-v3.json"
    path.write_text(json.dumps(SAMPLE_CACHE_NESTED))
    return path


@pytest.fixture
def flat_cache_path(tmp_path: Path) -> Path:
    """Write the state without the ``cache`` wrapper."""
    path = tmp_path / "flat.json"
    path.write_text(json.dumps(SAMPLE_STATE))
    return path


@pytest.fixture
def state(sample_cache_path: Path) -> CacheState:
    return load_cache(str(sample_cache_path))


@pytest.fixture
def credentials_path(tmp_path: Path) -> Path:
    path = tmp_path / "supabase.json"
    path.write_text(
        json.dumps(
            {
                "workos_tokens": json.dumps({"access_token": "tok-123"}),
                "user_info": json.dumps(
                    {"email": "me@example.com", "user_metadata": {"name": "Me"}}
                ),
            }
        )
    )
    return path


Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def make_client() -> Callable[[Handler], ApiClient]:
    """Build an ApiClient whose requests are answered by *handler*."""

    def _make(handler: Handler) -> ApiClient:
        return ApiClient("tok-123", transport=httpx.MockTransport(handler))

    return _make


def api_documents(*ids: str) -> list[dict]:
    """Sample documents shaped like the API's ``docs`` array."""
    return [SAMPLE_STATE["documents"][i] for i in ids]
