"""Data models for Granola meeting information.

Both the API and the local cache hand back loosely-typed JSON.  These
models pin down the fields the client reads and keep everything else
around (``extra="allow"``) so JSON output stays faithful to the source.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class _Record(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)


def _object_or_none(value: Any) -> Any:
    return value if isinstance(value, dict) else None


def _objects_only(value: Any) -> list[Any]:
    """Keep the dict entries of a list; anything else (``null``) is empty."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


class Attendee(_Record):
    """A person attached to a meeting (``people`` entry)."""

    name: str | None = None
    email: str | None = None


class CalendarAttendee(_Record):
    email: str | None = None
    display_name: str | None = Field(default=None, alias="displayName")


class EventTime(_Record):
    date_time: str | None = Field(default=None, alias="dateTime")

    @field_validator("date_time", mode="before")
    @classmethod
    def _string_or_none(cls, value: Any) -> Any:
        return value if isinstance(value, str) else None


class CalendarEvent(_Record):
    """The Google Calendar event a meeting was created from."""

    start: EventTime | None = None
    attendees: list[CalendarAttendee] = []

    @field_validator("start", mode="before")
    @classmethod
    def _start_object(cls, value: Any) -> Any:
        return _object_or_none(value)

    @field_validator("attendees", mode="before")
    @classmethod
    def _attendee_list(cls, value: Any) -> list[Any]:
        return _objects_only(value)


class Panel(_Record):
    """A document panel; ``content`` is a rich-text node tree."""

    content: Any = None


class Meeting(_Record):
    """A Granola document.

    ``people`` arrives either as a list of entries or as a keyed map
    (``{"creator": {...}, "attendees": [...]}``); both are normalized into
    one ordered list of :class:`Attendee` before anything filters on it.
    """

    id: str
    title: str | None = None
    type: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    notes_markdown: str | None = None
    notes_plain: str | None = None
    was_trashed: bool | None = None
    workspace_id: str | None = None
    people: list[Attendee] = []
    google_calendar_event: CalendarEvent | None = None
    last_viewed_panel: Panel | None = None

    @field_validator("people", mode="before")
    @classmethod
    def _normalize_people(cls, value: Any) -> list[Any]:
        if isinstance(value, dict):
            value = list(value.values())
        if not isinstance(value, list):
            return []
        entries: list[Any] = []
        for item in value:
            if isinstance(item, dict):
                entries.append(item)
            elif isinstance(item, list):
                entries.extend(i for i in item if isinstance(i, dict))
        return entries

    @field_validator("google_calendar_event", "last_viewed_panel", mode="before")
    @classmethod
    def _drop_non_objects(cls, value: Any) -> Any:
        return _object_or_none(value)

    @property
    def is_meeting(self) -> bool:
        return self.type == "meeting" and not self.was_trashed

    @property
    def notes_text(self) -> str | None:
        return self.notes_markdown or self.notes_plain or None

    @property
    def event_start(self) -> str | None:
        event = self.google_calendar_event
        if event and event.start:
            return event.start.date_time
        return None


class TranscriptSegment(_Record):
    """One utterance; ``source`` is ``microphone`` (you) or ``system`` (them)."""

    text: str = ""
    id: str | None = None
    source: str | None = None
    speaker: str | None = None
    start_timestamp: str | None = None
    end_timestamp: str | None = None

    @field_validator("text", mode="before")
    @classmethod
    def _text_or_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class Folder(_Record):
    """A document list, normalized from the API or the cache."""

    id: str
    title: str = "(untitled)"
    document_ids: list[str] = []
    visibility: str | None = None
    is_shared: bool | None = None

    @computed_field
    @property
    def note_count(self) -> int:
        return len(self.document_ids)

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "Folder":
        ids = raw.get("document_ids")
        if not isinstance(ids, list):
            ids = [
                d["id"]
                for d in raw.get("documents") or []
                if isinstance(d, dict) and d.get("id")
            ]
        return cls(
            id=raw["id"],
            title=raw.get("title") or raw.get("name") or "(untitled)",
            document_ids=ids,
            visibility=raw.get("visibility"),
            is_shared=raw.get("is_shared"),
        )


class Person(_Record):
    name: str | None = None
    email: str | None = None


class Workspace(_Record):
    """A workspace membership entry (``{"workspace": {...}, "role": ...}``)."""

    workspace: dict[str, Any] = {}
    role: str | None = None
    plan_type: str | None = None

    @field_validator("workspace", mode="before")
    @classmethod
    def _workspace_object(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @property
    def workspace_id(self) -> str | None:
        return self.workspace.get("workspace_id")

    @property
    def display_name(self) -> str:
        return self.workspace.get("display_name") or "Unnamed"


class CacheState(BaseModel):
    """Parsed contents of the local cache file (read-only snapshot)."""

    model_config = ConfigDict(frozen=True)

    documents: dict[str, Meeting] = {}
    transcripts: dict[str, list[TranscriptSegment]] = {}
    panels: dict[str, dict[str, Panel]] = {}
    folder_members: dict[str, list[str]] = {}
    folder_metadata: dict[str, dict[str, Any]] = {}
    people: dict[str, Person] = {}
    workspace_data: dict[str, Any] = {}
    shared_documents: dict[str, Meeting] = {}


class ListOptions(BaseModel):
    """Filters for a meeting listing; every filter is optional and ANDed."""

    limit: int = Field(default=20, ge=0)
    workspace: str | None = None
    folder: str | None = None
    attendee: str | None = None
    since: str | None = None
    until: str | None = None
    query: str | None = None


class MeetingDetail(BaseModel):
    """Everything a detail view shows, all taken from one source."""

    meeting: Meeting
    summary: Any = None
    transcript: list[TranscriptSegment] | None = None
    source: str

    @property
    def notes(self) -> str | None:
        return self.meeting.notes_text
