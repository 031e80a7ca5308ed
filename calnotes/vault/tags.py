"""Tag extraction for notes: front-matter ``tags`` plus inline #tags."""

from __future__ import annotations

import re
from pathlib import Path

import frontmatter

from ..models import STICKER_TAG_PREFIX

# "#tag" preceded by start of line, whitespace or an opening bracket.
INLINE_TAG_PATTERN = re.compile(r"(?:^|(?<=[\s(\[]))#([^\s#\[\](){}<>,;:!?\"'`|\\]+)")
CODE_FENCE_PATTERN = re.compile(r"^```.*?^```", re.MULTILINE | re.DOTALL)
STICKER_PATTERN = re.compile(rf"#{STICKER_TAG_PREFIX}(\S+)")


def _normalize(tag: str) -> str:
    return "#" + tag.strip().lstrip("#")


def _frontmatter_tags(metadata: dict) -> list[str]:
    raw = metadata.get("tags", metadata.get("tag"))
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        raw = re.split(r"[,\s]+", raw)
    elif not isinstance(raw, list):
        # A scalar such as ``tags: 2024``
        raw = [raw]
    return [_normalize(str(t)) for t in raw if t is not None and str(t).strip()]


def extract_tags(text: str) -> list[str]:
    """Tags of a note in document order, each with a leading '#', deduplicated."""
    try:
        post = frontmatter.loads(text)
        metadata, content = post.metadata, post.content
    except Exception:
        # Broken front matter: fall back to the raw text.
        metadata, content = {}, text

    content = CODE_FENCE_PATTERN.sub("", content)
    inline = [
        _normalize(match)
        for match in INLINE_TAG_PATTERN.findall(content)
        if not match.isdigit()
    ]

    seen = set()
    result = []
    for tag in _frontmatter_tags(metadata) + inline:
        if tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


def read_tags(path: Path) -> list[str]:
    return extract_tags(path.read_text(encoding="utf-8"))


def sticker_from_tags(tags: list[str]) -> str | None:
    """Value of the first ``#sticker-<value>`` tag, if any."""
    for tag in tags:
        if STICKER_TAG_PREFIX in tag:
            match = STICKER_PATTERN.search(_normalize(tag))
            if match:
                return match.group(1)
    return None
