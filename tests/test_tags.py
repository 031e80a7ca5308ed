from __future__ import annotations

import pytest

from calnotes.vault.tags import extract_tags, sticker_from_tags


def test_inline_and_front_matter_tags() -> None:
    text = "---\ntags: [daily, review]\n---\nBody #sticker-🔥 and #idea\n"
    assert extract_tags(text) == ["#daily", "#review", "#sticker-🔥", "#idea"]
    assert sticker_from_tags(extract_tags(text)) == "🔥"


def test_tags_in_code_fences_are_ignored() -> None:
    text = "```\n#sticker-x\n```\nplain #2024\n"
    assert extract_tags(text) == []


@pytest.mark.parametrize(
    ("front_matter", "expected"),
    [
        ("tags: 2024", ["#2024"]),
        ("tags: 5.5", ["#5.5"]),
        ("tags: daily, work", ["#daily", "#work"]),
        ("tags: [2024, ~, log]", ["#2024", "#log"]),
        ("tags:", []),
    ],
)
def test_scalar_front_matter_tags(front_matter: str, expected: list[str]) -> None:
    text = f"---\n{front_matter}\n---\nbody #sticker-x\n"
    assert extract_tags(text) == expected + ["#sticker-x"]
