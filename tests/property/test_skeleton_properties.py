"""Property tests for the structural fingerprint."""

from __future__ import annotations

from hypothesis import assume, given, settings
from hypothesis import strategies as st

from edgeprobe.analysis.skeleton import StructuralBaseline, skeleton_hash


# --- Strategies ---

tag_names = st.sampled_from(["div", "span", "p", "a", "ul", "li", "h1", "section"])
visible_text = st.text(alphabet="abcdefghij XYZ0123456789.,!", max_size=20)
tag_sequences = st.lists(tag_names, min_size=1, max_size=8)


def _render(tags: list[str], texts: list[str]) -> str:
    """Render nested tags with the given text between them."""
    texts = texts + [""] * (2 * len(tags) + 1)
    parts = [texts[0]]
    for i, tag in enumerate(tags):
        parts.append(f"<{tag}>")
        parts.append(texts[i + 1])
    for j, tag in enumerate(reversed(tags)):
        parts.append(f"</{tag}>")
        parts.append(texts[len(tags) + 1 + j])
    return "".join(parts)


# --- Properties ---

@settings(max_examples=100)
@given(
    tags=tag_sequences,
    texts_a=st.lists(visible_text, max_size=17),
    texts_b=st.lists(visible_text, max_size=17),
)
def test_visible_text_never_changes_hash(
    tags: list[str], texts_a: list[str], texts_b: list[str]
) -> None:
    """Pages with identical tag structure hash identically regardless of text."""
    assert skeleton_hash(_render(tags, texts_a)) == skeleton_hash(_render(tags, texts_b))


@settings(max_examples=100)
@given(tags=tag_sequences, extra=tag_names, text=visible_text)
def test_added_tag_changes_hash(tags: list[str], extra: str, text: str) -> None:
    """Adding a tag changes the hash."""
    body = _render(tags, [text])
    assert skeleton_hash(body) != skeleton_hash(body + f"<{extra}>")


@settings(max_examples=100)
@given(tags=st.lists(tag_names, min_size=2, max_size=8, unique=True))
def test_reordered_tags_change_hash(tags: list[str]) -> None:
    """Reordering tags changes the hash."""
    reordered = list(reversed(tags))
    assume(reordered != tags)
    assert skeleton_hash(_render(tags, [])) != skeleton_hash(_render(reordered, []))


@settings(max_examples=100)
@given(bodies=st.lists(st.text(alphabet="<>/abc ", max_size=30), min_size=1, max_size=10))
def test_baseline_is_captured_once(bodies: list[str]) -> None:
    """The first observed body fixes the baseline; later bodies never replace it."""
    baseline = StructuralBaseline()
    results = [baseline.observe(body) for body in bodies]

    assert results[0] == (True, False)
    assert all(captured is False for captured, _ in results[1:])
    assert baseline.value == skeleton_hash(bodies[0])
    for body, (_, drifted) in zip(bodies[1:], results[1:]):
        assert drifted == (skeleton_hash(body) != baseline.value)
