"""Render a reconstructed conversation as a single Markdown document."""

from datetime import datetime, timezone

from sessionsync.store.models import Conversation, ConversationEntry, ToolCall, format_date

INPUT_VALUE_LIMIT = 120
OUTPUT_LIMIT = 500


def _format_datetime(ts_ms: int) -> str:
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc).strftime(
        "%Y-%m-%d %H:%M:%S"
    )


def _escape_frontmatter(value: str) -> str:
    if any(c in value for c in ('"', ":", "#", "\n")):
        return '"' + value.replace('"', '\\"') + '"'
    return value


def _format_tool_call(tc: ToolCall) -> str:
    lines = [f"> **Tool: {tc.tool}** ({tc.status or 'unknown'})"]

    if tc.input:
        summary = ", ".join(
            f"{key}: {val[:INPUT_VALUE_LIMIT] + '...' if len(val) > INPUT_VALUE_LIMIT else val}"
            for key, val in (
                (k, str(v))
                for k, v in tc.input.items()
                if isinstance(v, (str, int, float)) and not isinstance(v, bool)
            )
        )
        if summary:
            lines.append(f"> Input: {summary}")

    if tc.output:
        output = tc.output
        if len(output) > OUTPUT_LIMIT:
            output = output[:OUTPUT_LIMIT] + "\n...(truncated)"
        lines.append("> Output:")
        lines.append("> ```")
        lines.extend(f"> {line}" for line in output.split("\n"))
        lines.append("> ```")

    return "\n".join(lines)


def _format_entry(entry: ConversationEntry) -> str:
    role_label = "User" if entry.role == "user" else "Assistant"
    meta = []
    if entry.model:
        meta.append(entry.model)
    if entry.agent:
        meta.append(f"agent:{entry.agent}")
    if entry.cost:
        meta.append(f"${entry.cost:.4f}")

    header = f"### {role_label} ({_format_datetime(entry.timestamp)})"
    if meta:
        header += " - " + " | ".join(meta)

    lines = [header, ""]
    if entry.text_content.strip():
        lines += [entry.text_content.strip(), ""]
    for tc in entry.tool_calls:
        lines += [_format_tool_call(tc), ""]
    lines += ["---", ""]
    return "\n".join(lines)


def render_document(conversation: Conversation) -> str:
    """Render the full conversation, frontmatter included."""
    session = conversation.session
    created = format_date(session.time.created)
    title = session.display_title

    lines = [
        "---",
        f"title: {_escape_frontmatter(title)}",
        f"session_id: {session.id}",
        f"project: {_escape_frontmatter(conversation.project_name)}",
        f"project_path: {_escape_frontmatter(conversation.project_path)}",
        f"date: {created}",
        f"messages: {len(conversation.entries)}",
    ]
    if session.parent_id:
        lines.append(f"parent_session: {session.parent_id}")
    lines += [
        "tags:",
        "  - opencode-session",
        f"  - project/{conversation.project_name}",
        "---",
        "",
        f"# {title}",
        "",
        f"**Project:** {conversation.project_name} (`{conversation.project_path}`)",
        f"**Date:** {created}",
        f"**Messages:** {len(conversation.entries)}",
        "",
    ]
    lines += [_format_entry(entry) for entry in conversation.entries]
    return "\n".join(lines)
