"""Markdown rendering for session notes."""

from sessionsync.render.formatter import render_document
from sessionsync.render.notes import (
    build_raw_log_notes,
    build_skeleton_summary,
    build_summary,
    escape_yaml,
)
from sessionsync.render.splitter import DocumentPart, split_if_oversized
from sessionsync.render.tagger import extract_tags

__all__ = [
    "DocumentPart",
    "build_raw_log_notes",
    "build_skeleton_summary",
    "build_summary",
    "escape_yaml",
    "extract_tags",
    "render_document",
    "split_if_oversized",
]
