"""Markdown rendering for meetings, summaries and transcripts."""

from enum import Enum
from typing import Any

from .types import Folder, Meeting, Person, TranscriptSegment, Workspace


class NodeKind(Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    LIST_ITEM = "listItem"
    LINE_BREAK = "hardBreak"
    TEXT = "text"
    UNKNOWN = "unknown"

    @classmethod
    def of(cls, node: dict[str, Any]) -> "NodeKind":
        if isinstance(node.get("text"), str):
            return cls.TEXT
        tag = node.get("type")
        if tag in ("bulletList", "orderedList"):
            return cls.LIST
        try:
            return cls(tag)
        except ValueError:
            return cls.UNKNOWN


def rich_text_to_markdown(node: Any) -> str:
    """Flatten a ProseMirror-style node tree into markdown text."""
    if not node:
        return ""
    if isinstance(node, str):
        return node
    if isinstance(node, list):
        return "".join(rich_text_to_markdown(child) for child in node)
    if not isinstance(node, dict):
        return ""

    kind = NodeKind.of(node)
    if kind is NodeKind.TEXT:
        return node.get("text") or ""
    if kind is NodeKind.LINE_BREAK:
        return "\n"

    inner = rich_text_to_markdown(node.get("content"))
    if kind is NodeKind.HEADING:
        return f"\n## {inner}\n"
    if kind in (NodeKind.PARAGRAPH, NodeKind.LIST):
        return f"{inner}\n"
    if kind is NodeKind.LIST_ITEM:
        return f"- {inner}"
    return inner


def format_summary(content: Any) -> str | None:
    """Rendered summary text, or ``None`` when the document is empty."""
    return rich_text_to_markdown(content).strip() or None


def speaker_label(segment: TranscriptSegment) -> str:
    if segment.speaker:
        return segment.speaker
    if segment.source == "microphone":
        return "You"
    if segment.source == "system":
        return "Them"
    return "Speaker"


def format_transcript(
    segments: list[TranscriptSegment], timestamps: bool = True
) -> str:
    lines = []
    for seg in segments:
        ts = f"[{seg.start_timestamp}] " if timestamps and seg.start_timestamp else ""
        lines.append(f"{ts}{speaker_label(seg)}: {seg.text}")
    return "\n".join(lines)


def _display_date(meeting: Meeting) -> str:
    return meeting.created_at or meeting.event_start or ""


def format_meeting_list(meetings: list[Meeting]) -> str:
    lines = []
    for m in meetings:
        date = m.created_at or m.updated_at or ""
        line = f"- {m.title or 'Untitled'} ({m.id})"
        lines.append(f"{line} — {date}" if date else line)
    return "\n".join(lines)


def format_meeting(
    meeting: Meeting, notes: str | None = None, summary: str | None = None
) -> str:
    parts = [f"# {meeting.title or 'Untitled'}"]
    date = _display_date(meeting)
    if date:
        parts.append(f"\n**Date:** {date}\n")
    parts += ["## Notes", notes or "(No notes)", ""]
    parts += ["## Summary", summary or "(No summary)", ""]
    return "\n".join(parts)


def format_frontmatter(meeting: Meeting) -> str:
    title = (meeting.title or "Untitled").replace('"', '\\"')
    return "\n".join(
        [
            "---",
            f"granola_id: {meeting.id}",
            f'title: "{title}"',
            f"created_at: {_display_date(meeting)}",
            "---",
            "",
        ]
    )


def format_export(
    meeting: Meeting, summary: str | None = None, transcript: str | None = None
) -> str:
    return "\n".join(
        [
            format_frontmatter(meeting),
            "## Summary",
            summary or "(No summary)",
            "",
            "## Transcript",
            transcript or "(No transcript)",
            "",
        ]
    )


def format_people(people: list[Person]) -> str:
    lines = []
    for p in people:
        name = p.name or "Unknown"
        lines.append(f"- {name} ({p.email})" if p.email else f"- {name}")
    return "\n".join(lines)


def format_workspaces(workspaces: list[Workspace]) -> str:
    return "\n".join(f"- {w.display_name} ({w.workspace_id})" for w in workspaces)


def format_folders(folders: list[Folder]) -> str:
    return "\n".join(f"- {f.title} ({f.id})" for f in folders)
