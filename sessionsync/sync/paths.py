"""Note path template.

Every note for a session lives in one folder:

  <root>/<project>/sessions/<YYYY-MM>/<DD>-<slug>/<summary|raw-log|raw-log-part-N>.md

Escaping rules:
- The project name is a single path segment. The characters
  ``< > : " / \\ | ? * # ^ [ ]`` and control characters are replaced with
  ``-``; an empty result becomes ``unknown``.
- Slugs are built from words with those characters already stripped, so
  they are safe as-is.
- Percent-encoding for the HTTP layer happens in the sink client, not here.

Quarantined notes keep the same layout with the ``sessions`` area segment
replaced by ``trash``.
"""

import re

DEFAULT_ROOT = "10-Projects"
SLUG_MAX_LENGTH = 40
MAX_RAW_LOG_PARTS = 20

SUMMARY = "summary"
RAW_LOG = "raw-log"
RAW_LOG_PART = "raw-log-part"

SESSIONS_AREA = "sessions"
TRASH_AREA = "trash"

_UNSAFE_RE = re.compile(r'[<>:"/\\|?*#^\[\]]')
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_WORD_SPLIT_RE = re.compile(r"[\s_-]+")

STOP_WORDS = frozenset(
    """
    a an the and or but for in on at to of with is was are were be been being
    have has had do does did will would could should may might shall can this
    that these those it its my your our their his her from by about into
    through during before after above below between under again further then
    once here there when where why how all each every both few more most other
    some such no nor not only own same so than too very just because as until
    while also i me we you he she they them what which who whom let lets using
    use need needs
    """.split()
)


def sanitize_segment(value: str) -> str:
    """Make a string safe to use as one path segment."""
    cleaned = _CONTROL_RE.sub("-", _UNSAFE_RE.sub("-", value)).strip()
    return cleaned or "unknown"


def session_slug(title: str, fallback: str = "") -> str:
    """Derive a short, filesystem-safe slug from a session title.

    Stopwords are dropped and the result is capped at SLUG_MAX_LENGTH,
    cutting at the last dash when that keeps more than 10 characters.
    ``fallback`` (usually the session id) is used when nothing survives.
    """
    words = [
        w
        for w in _WORD_SPLIT_RE.split(_UNSAFE_RE.sub("", title.lower()))
        if w and w not in STOP_WORDS
    ]
    slug = re.sub(r"-+", "-", "-".join(words)).strip("-")
    if not slug:
        fb = _UNSAFE_RE.sub("", fallback.lower())
        return _WORD_SPLIT_RE.sub("-", fb).strip("-")[:12] or "untitled"
    if len(slug) <= SLUG_MAX_LENGTH:
        return slug
    truncated = slug[:SLUG_MAX_LENGTH]
    last_dash = truncated.rfind("-")
    return truncated[:last_dash] if last_dash > 10 else truncated


def note_folder(
    project_name: str, created_date: str, slug: str, root: str = DEFAULT_ROOT
) -> str:
    """Folder holding a session's notes. ``created_date`` is YYYY-MM-DD."""
    year_month = created_date[:7]
    day = created_date[8:10]
    project = sanitize_segment(project_name)
    return f"{root}/{project}/{SESSIONS_AREA}/{year_month}/{day}-{slug}"


def note_path(
    project_name: str,
    created_date: str,
    slug: str,
    kind: str = SUMMARY,
    part: int | None = None,
    root: str = DEFAULT_ROOT,
) -> str:
    """Full path of one note.

    Raises:
        ValueError: Unknown kind, or a raw-log part without a positive number
    """
    if kind == RAW_LOG_PART:
        if not part or part < 1:
            raise ValueError("raw-log-part notes need a part number >= 1")
        name = f"{RAW_LOG_PART}-{part}"
    elif kind in (SUMMARY, RAW_LOG):
        name = kind
    else:
        raise ValueError(f"Unknown note kind: {kind}")
    return f"{note_folder(project_name, created_date, slug, root)}/{name}.md"


def raw_log_paths(
    project_name: str, created_date: str, slug: str, root: str = DEFAULT_ROOT
) -> list[str]:
    """The single raw-log path followed by every possible part path."""
    paths = [note_path(project_name, created_date, slug, RAW_LOG, root=root)]
    paths += [
        note_path(project_name, created_date, slug, RAW_LOG_PART, i, root=root)
        for i in range(1, MAX_RAW_LOG_PARTS + 1)
    ]
    return paths


def sibling_path(summary_path: str, name: str) -> str:
    """Path of another note in the same folder as ``summary_path``."""
    folder, _, _ = summary_path.rpartition("/")
    return f"{folder}/{name}.md"


def quarantine_path(path: str, root: str = DEFAULT_ROOT) -> str:
    """Where a note goes when its session disappears upstream.

    Only the area segment that follows the project is swapped, so a project
    that is itself named ``sessions`` keeps its name.

    Raises:
        ValueError: ``path`` is not a session note under ``root``
    """
    segments = path.split("/")
    area = len(root.split("/")) + 1
    if (
        len(segments) <= area
        or "/".join(segments[: area - 1]) != root
        or segments[area] != SESSIONS_AREA
    ):
        raise ValueError(f"Not a session note under {root}: {path}")
    segments[area] = TRASH_AREA
    return "/".join(segments)
