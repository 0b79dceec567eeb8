"""Matching, sorting and lookup rules shared by the API and cache sources.

Both sources run every listing through these functions so a query gives
the same answer whichever side produced the records.
"""

from collections.abc import Iterable
from datetime import datetime, timezone

from .types import Folder, ListOptions, Meeting


def parse_timestamp(value: str | None) -> float | None:
    """Parse an ISO-8601 date or datetime into epoch seconds.

    Naive values are taken as UTC.  Returns ``None`` for missing or
    malformed input.
    """
    if not value or not isinstance(value, str):
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def meeting_date(meeting: Meeting) -> str | None:
    """Best available date: created, else updated, else calendar start."""
    return meeting.created_at or meeting.updated_at or meeting.event_start


def matches_date(
    meeting: Meeting, since: str | None = None, until: str | None = None
) -> bool:
    when = parse_timestamp(meeting_date(meeting))
    if when is None:
        return True
    start = parse_timestamp(since)
    if start is not None and when < start:
        return False
    end = parse_timestamp(until)
    if end is not None and when > end:
        return False
    return True


def matches_attendee(meeting: Meeting, attendee: str | None = None) -> bool:
    if not attendee:
        return True
    q = attendee.lower()
    for person in meeting.people:
        if q in (person.name or "").lower() or q in (person.email or "").lower():
            return True
    event = meeting.google_calendar_event
    for guest in event.attendees if event else []:
        if q in (guest.display_name or "").lower() or q in (guest.email or "").lower():
            return True
    return False


def matches_query(meeting: Meeting, query: str | None = None) -> bool:
    if not query:
        return True
    q = query.lower()
    return q in (meeting.title or "").lower() or q in (meeting.notes_text or "").lower()


def matches_workspace(meeting: Meeting, workspace: str | None = None) -> bool:
    if not workspace or not meeting.workspace_id:
        return True
    return meeting.workspace_id == workspace


def apply_filters(
    meetings: Iterable[Meeting],
    options: ListOptions,
    members: set[str] | None = None,
) -> list[Meeting]:
    """Keep live meetings passing every filter in *options*.

    *members* is the resolved folder membership when a folder filter is
    active.
    """
    return [
        m
        for m in meetings
        if m.is_meeting
        and matches_date(m, options.since, options.until)
        and matches_attendee(m, options.attendee)
        and matches_query(m, options.query)
        and matches_workspace(m, options.workspace)
        and (members is None or m.id in members)
    ]


def recency(meeting: Meeting) -> float:
    return parse_timestamp(meeting.updated_at or meeting.created_at) or 0.0


def sort_by_recency(meetings: Iterable[Meeting]) -> list[Meeting]:
    """Most recently updated first; ties keep their original order."""
    return sorted(meetings, key=recency, reverse=True)


def find_folder(folders: Iterable[Folder], id_or_name: str) -> Folder | None:
    """Exact id, or case-insensitive substring of the title."""
    folders = list(folders)
    for folder in folders:
        if folder.id == id_or_name:
            return folder
    needle = id_or_name.lower()
    for folder in folders:
        if needle in folder.title.lower():
            return folder
    return None


def resolve_meeting_id(meetings: list[Meeting], query: str) -> str | None:
    """Match *query* against ids first, then titles.

    An exact id wins over an id prefix, and any id match wins over a
    title match.
    """
    if not query:
        return None
    for meeting in meetings:
        if meeting.id == query:
            return meeting.id
    for meeting in meetings:
        if meeting.id.startswith(query):
            return meeting.id
    needle = query.lower()
    for meeting in meetings:
        if needle in (meeting.title or "").lower():
            return meeting.id
    return None
