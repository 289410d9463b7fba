"""Plain-text helpers shared by split, merge and import."""

import html
import re
from dataclasses import dataclass

from manuscript_binder.config import TITLE_ELLIPSIS, TITLE_MAX_LENGTH

_TAG_RE = re.compile(r"<[^>]*>")


def strip_markup(content: str) -> str:
    """Remove markup tags, leaving only the text."""
    return _TAG_RE.sub("", content)


def count_words(content: str | None) -> int:
    """Count whitespace-separated words after stripping markup."""
    if not content:
        return 0
    return len(strip_markup(content).split())


def truncate_title(title: str, *, max_length: int = TITLE_MAX_LENGTH) -> str:
    if len(title) > max_length:
        return title[:max_length] + TITLE_ELLIPSIS
    return title


def lines_to_paragraphs(lines: list[str]) -> str:
    """Wrap each line in a ``<p>`` element."""
    return "".join(f"<p>{html.escape(line, quote=False)}</p>" for line in lines)


@dataclass(frozen=True)
class ImportedSection:
    """One chunk of pasted text, ready to become a document."""

    title: str
    content: str
    word_count: int


def split_sections(raw_text: str, separator: str) -> list[ImportedSection]:
    """Split pasted text into titled sections on every ``separator``.

    Whitespace-only segments are dropped. The first line of each segment is
    its title; the rest becomes the body, one paragraph per line. A section
    without body lines gets a single empty paragraph.
    """
    if not separator:
        msg = "Separator must not be empty"
        raise ValueError(msg)

    sections: list[ImportedSection] = []
    for segment in raw_text.split(separator):
        if not segment.strip():
            continue
        title, *body = segment.strip().splitlines()
        sections.append(
            ImportedSection(
                title=truncate_title(title.strip()),
                content=lines_to_paragraphs(body or [""]),
                word_count=count_words("\n".join(body)),
            )
        )
    return sections
