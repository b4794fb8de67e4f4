"""Property tests for response classification.

Validates rule precedence, determinism and the reason formats of blocked
verdicts.
"""

from __future__ import annotations

from hypothesis import assume, given, settings
from hypothesis import strategies as st

from edgeprobe.analysis.classifier import (
    BLOCK_KEYWORDS,
    BLOCKED_STATUSES,
    JAVASCRIPT_CHALLENGE_MARKERS,
    SUCCESS_MARKERS,
    Outcome,
    classify,
    detect_challenge,
    has_success_marker,
)


# --- Strategies ---

statuses = st.integers(min_value=100, max_value=599)
filler = st.text(alphabet="xyz0123456789 <>/=\"", max_size=60)
success_markers = st.sampled_from(SUCCESS_MARKERS)
challenge_markers = st.sampled_from(JAVASCRIPT_CHALLENGE_MARKERS)
block_keywords = st.sampled_from(BLOCK_KEYWORDS)
any_text = st.text(max_size=200)


def _mixed_case(draw_bools: list[bool], text: str) -> str:
    return "".join(c.upper() if up else c for c, up in zip(text, draw_bools + [False] * len(text)))


# --- Properties ---

@settings(max_examples=100)
@given(status=statuses, marker=success_markers, before=any_text, after=any_text)
def test_success_marker_always_wins(status: int, marker: str, before: str, after: str) -> None:
    """Any body containing a success marker is Success, whatever the status."""
    verdict = classify(status, before + marker + after)
    assert verdict.outcome is Outcome.SUCCESS


@settings(max_examples=100)
@given(
    status=statuses,
    marker=challenge_markers,
    upper=st.lists(st.booleans(), max_size=30),
    before=filler,
    after=filler,
)
def test_challenge_marker_any_case(
    status: int, marker: str, upper: list[bool], before: str, after: str
) -> None:
    """Challenge markers match case-insensitively and beat every status rule."""
    body = before + _mixed_case(upper, marker) + after
    assume(not has_success_marker(body))
    assert classify(status, body).outcome is Outcome.CHALLENGE


@settings(max_examples=100)
@given(status=st.sampled_from(sorted(BLOCKED_STATUSES)), body=filler)
def test_blocked_status_reason(status: int, body: str) -> None:
    """Status 403/429 without success or challenge markers is Blocked("HTTP <status>")."""
    verdict = classify(status, body)
    assert verdict.outcome is Outcome.BLOCKED
    assert verdict.reason == f"HTTP {status}"


@settings(max_examples=100)
@given(status=st.integers(min_value=200, max_value=299), word=block_keywords, body=filler)
def test_block_keyword_on_2xx(status: int, word: str, body: str) -> None:
    """A 2xx page carrying a block keyword is blocked with a keyword reason."""
    full = body + word.upper() + body
    assume(detect_challenge(full) is None)
    verdict = classify(status, full)
    assert verdict.outcome is Outcome.BLOCKED
    assert verdict.reason.startswith("keyword: ")
    assert verdict.reason.removeprefix("keyword: ") in BLOCK_KEYWORDS


@settings(max_examples=100)
@given(status=statuses, body=filler)
def test_status_fallback(status: int, body: str) -> None:
    """Without any marker or keyword the verdict depends on the status alone."""
    assume(status not in BLOCKED_STATUSES)
    verdict = classify(status, body)
    if 200 <= status < 300:
        assert verdict.outcome is Outcome.SUCCESS
    else:
        assert verdict.reason == f"status {status}"


@settings(max_examples=100)
@given(status=statuses, body=any_text)
def test_classify_is_deterministic(status: int, body: str) -> None:
    """Classification is a pure function of (status, body)."""
    first = classify(status, body)
    assert classify(status, body) == first
    if first.outcome is Outcome.CHALLENGE:
        assert first.challenge is not None and first.reason is None
    elif first.outcome is Outcome.BLOCKED:
        assert first.reason and first.challenge is None
