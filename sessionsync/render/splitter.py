"""Split oversized conversation documents into numbered parts."""

import re
from dataclasses import dataclass

DEFAULT_MESSAGE_LIMIT = 300

_FRONTMATTER_RE = re.compile(r"^---\n(.*?)\n---\n", re.DOTALL)
_MESSAGE_SECTION_RE = re.compile(r"(?=^### (?:User|Assistant) \()", re.MULTILINE)


@dataclass
class DocumentPart:
    content: str
    part_number: int
    total_parts: int


def split_if_oversized(
    markdown: str, limit: int = DEFAULT_MESSAGE_LIMIT
) -> list[DocumentPart]:
    """Split a rendered document into parts of at most ``limit`` messages.

    Each part repeats the original frontmatter with ``part`` and
    ``total_parts`` appended. The header section before the first message
    stays with part 1. Documents without frontmatter are never split.
    """
    match = _FRONTMATTER_RE.match(markdown)
    if not match:
        return [DocumentPart(markdown, 1, 1)]

    frontmatter = match.group(1)
    sections = _MESSAGE_SECTION_RE.split(markdown[match.end():])
    header = sections.pop(0) if sections else ""

    if len(sections) <= limit:
        return [DocumentPart(markdown, 1, 1)]

    total = -(-len(sections) // limit)
    parts = []
    for i in range(total):
        chunk = "".join(sections[i * limit:(i + 1) * limit])
        body = header + chunk if i == 0 else chunk
        content = (
            f"---\n{frontmatter}\npart: {i + 1}\ntotal_parts: {total}\n---\n{body}"
        )
        parts.append(DocumentPart(content, i + 1, total))
    return parts
