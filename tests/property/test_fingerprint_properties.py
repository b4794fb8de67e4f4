"""Property tests for interaction simulation.

Validates pointer path bounds and endpoints, plan shape, and action delay
bounds.
"""

from __future__ import annotations

import random

from hypothesis import given, settings
from hypothesis import strategies as st

from edgeprobe.browser.fingerprint import HumanInteraction


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

# Delay range: min in [10, 5000], max >= min
delay_ranges = st.integers(min_value=10, max_value=5000).flatmap(
    lambda lo: st.integers(min_value=lo, max_value=lo + 5000).map(
        lambda hi: (lo, hi)
    )
)

# Random seeds for reproducibility control
seeds = st.integers(min_value=0, max_value=2**32 - 1)

viewports = st.tuples(
    st.integers(min_value=2, max_value=3840),
    st.integers(min_value=2, max_value=2160),
)


@st.composite
def paths(draw):
    width, height = draw(viewports)
    point = st.tuples(
        st.floats(min_value=0, max_value=width - 1, allow_nan=False),
        st.floats(min_value=0, max_value=height - 1, allow_nan=False),
    )
    return width, height, draw(point), draw(point), draw(st.integers(min_value=1, max_value=40))


# ---------------------------------------------------------------------------
# Pointer paths
# ---------------------------------------------------------------------------


@settings(max_examples=100)
@given(seed=seeds, case=paths())
def test_path_stays_in_viewport_and_ends_at_destination(seed: int, case) -> None:
    """Every point lies inside the viewport and the last one is the destination."""
    width, height, start, end, steps = case
    sim = HumanInteraction(rng=random.Random(seed), width=width, height=height)

    points = sim.path(start, end, steps)

    assert len(points) == steps
    assert points[-1] == end
    for x, y in points:
        assert 0.0 <= x <= width - 1
        assert 0.0 <= y <= height - 1


@settings(max_examples=100)
@given(seed=seeds)
def test_plan_shape(seed: int) -> None:
    """Plans move 8-15 steps with short delays and one bounded scroll."""
    plan = HumanInteraction(rng=random.Random(seed)).plan()

    assert 8 <= len(plan.points) <= 15
    assert len(plan.delays_ms) == len(plan.points)
    assert all(20 <= d <= 80 for d in plan.delays_ms)
    assert 200 <= plan.scroll_delta <= 600


# ---------------------------------------------------------------------------
# Action delays
# ---------------------------------------------------------------------------


@settings(max_examples=100)
@given(seed=seeds, delay_range=delay_ranges)
def test_action_delays_within_configured_range(
    seed: int,
    delay_range: tuple[int, int],
) -> None:
    min_delay_ms, max_delay_ms = delay_range
    sim = HumanInteraction(rng=random.Random(seed))

    for _ in range(10):
        delay = sim.get_action_delay(min_delay_ms=min_delay_ms, max_delay_ms=max_delay_ms)
        assert min_delay_ms <= delay <= max_delay_ms, (
            f"Delay {delay} outside range [{min_delay_ms}, {max_delay_ms}]"
        )
