"""Note templates written to the sink: session summaries and raw logs."""

from __future__ import annotations

import time

from sessionsync.render.formatter import render_document
from sessionsync.render.splitter import DocumentPart, split_if_oversized
from sessionsync.render.tagger import extract_tags
from sessionsync.store.models import Conversation, Session, format_date

ACTIVE_WINDOW_MS = 30 * 60 * 1000
RAW_LOG_MESSAGE_LIMIT = 300

_YAML_SPECIAL = ('"', ":", "#", "\n", "[", "]")


def escape_yaml(value: str) -> str:
    """Quote a scalar for YAML frontmatter when it contains special characters."""
    if any(c in value for c in _YAML_SPECIAL):
        return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return value


def format_duration(ms: int) -> str:
    if ms < 60_000:
        return f"{int(ms / 1000 + 0.5)}s"
    if ms < 3_600_000:
        return f"{int(ms / 60_000 + 0.5)}m"
    hours, rest = divmod(ms, 3_600_000)
    return f"{hours}h {int(rest / 60_000 + 0.5)}m"


def session_status(session: Session, now_ms: int | None = None) -> str:
    if session.time.completed:
        return "completed"
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    last_activity = session.time.updated or session.time.created
    return "active" if last_activity > now_ms - ACTIVE_WINDOW_MS else "idle"


def build_skeleton_summary(
    session_id: str,
    project_name: str,
    project_path: str,
    created: str,
    title: str,
) -> str:
    """Summary written as soon as a session is created, before any messages."""
    lines = [
        "---",
        "aliases: []",
        "tags: [type/session-log, type/summary]",
        f"created: {created}",
        f"session_id: {session_id}",
        f"project: {escape_yaml(project_name)}",
        f"directory: {escape_yaml(project_path)}",
        'branch: ""',
        "status: active",
        "agents: []",
        "models: []",
        "message_count: 0",
        "total_cost: 0.0000",
        "total_tokens: 0",
        'duration: "0s"',
        "files_changed: 0",
        'parent_session: ""',
        "---",
        "",
        f"# Session: {title}",
        "",
        f"**Project:** [[{project_name}]] (`{project_path}`)",
        f"**Date:** {created}",
        "**Messages:** 0",
        "**Duration:** 0s",
        "**Cost:** $0.0000",
        "",
        "## Links",
        "- **Raw Log**: See raw-log note(s) in this folder",
        "",
    ]
    return "\n".join(lines)


def _unique(values) -> list[str]:
    return list(dict.fromkeys(v for v in values if v))


def build_summary(
    conversation: Conversation, total_tokens: int, now_ms: int | None = None
) -> str:
    """Summary rebuilt from the full conversation on update, idle and compaction."""
    session = conversation.session
    created = format_date(session.time.created)
    agents = _unique(e.agent for e in conversation.entries)
    models = _unique(e.model for e in conversation.entries)
    cost = sum(e.cost or 0 for e in conversation.entries)
    duration = format_duration(
        (session.time.updated or session.time.created) - session.time.created
    )
    tags = ["type/session-log", "type/summary", *extract_tags(conversation)]
    count = len(conversation.entries)
    parent = session.parent_id or '""'

    lines = [
        "---",
        "aliases: []",
        f"tags: [{', '.join(tags)}]",
        f"created: {created}",
        f"session_id: {session.id}",
        f"project: {escape_yaml(conversation.project_name)}",
        f"directory: {escape_yaml(conversation.project_path)}",
        'branch: ""',
        f"status: {session_status(session, now_ms)}",
        f"agents: [{', '.join(escape_yaml(a) for a in agents)}]",
        f"models: [{', '.join(escape_yaml(m) for m in models)}]",
        f"message_count: {count}",
        f"total_cost: {cost:.4f}",
        f"total_tokens: {total_tokens}",
        f"duration: {escape_yaml(duration)}",
        "files_changed: 0",
        f"parent_session: {parent}",
        "---",
        "",
        f"# Session: {session.display_title}",
        "",
        f"**Project:** [[{conversation.project_name}]] (`{conversation.project_path}`)",
        f"**Date:** {created}",
        f"**Messages:** {count}",
        f"**Duration:** {duration}",
        f"**Cost:** ${cost:.4f}",
        f"**Agents:** {', '.join(agents) or 'none'}",
        f"**Models:** {', '.join(models) or 'none'}",
        "",
        "## Links",
    ]
    if session.parent_id:
        lines.append(f"- **Parent Session**: {session.parent_id}")
    lines += ["- **Raw Log**: See raw-log note(s) in this folder", ""]
    return "\n".join(lines)


def _strip_frontmatter(markdown: str) -> str:
    end = markdown.find("---", 4)
    return markdown if end == -1 else markdown[end + 3:].strip()


def build_raw_log_notes(conversation: Conversation, slug: str) -> list[DocumentPart]:
    """Raw-log notes for a conversation, one per split part.

    Returns an empty list when the conversation has no entries.
    """
    if not conversation.entries:
        return []

    session = conversation.session
    created = format_date(session.time.created)
    day = created[8:10]
    tags = ["type/session-log", "type/raw-log", *extract_tags(conversation)]
    splits = split_if_oversized(render_document(conversation), RAW_LOG_MESSAGE_LIMIT)
    total = len(splits)

    notes = []
    for split in splits:
        n = split.part_number
        lines = [
            "---",
            f"tags: [{', '.join(tags)}]",
            f"session_id: {session.id}",
            f"project: {escape_yaml(conversation.project_name)}",
            f"created: {created}",
            f"part: {n}",
            f"total_parts: {total}",
            "---",
            "",
            f"# Raw Log: {session.id} (Part {n}/{total})",
            "",
            f"> [!info] This is the raw conversation log for session `{session.id}`.",
            f"> For the summary, see [[{day}-{slug}/summary]].",
            "",
        ]
        if total > 1:
            if n > 1:
                lines.append(f"> Previous part: [[{day}-{slug}/raw-log-part-{n - 1}]]")
            if n < total:
                lines.append(f"> Next part: [[{day}-{slug}/raw-log-part-{n + 1}]]")
            lines.append("")
        lines += [_strip_frontmatter(split.content), ""]
        notes.append(DocumentPart("\n".join(lines), n, total))
    return notes
