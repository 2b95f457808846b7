import math
import random

import pytest

from storefront.app.config import MotionSettings
from storefront.app.models import MotionSample
from storefront.app.sensors.motion import MotionSignalClassifier
from storefront.app.state import Decision


def linear(ts, x, y=0.0, z=0.0):
    return MotionSample(x=x, y=y, z=z, timestamp_ms=ts, has_linear_acceleration=True)


def gravity(ts, x, y, z):
    return MotionSample(x=x, y=y, z=z, timestamp_ms=ts, has_linear_acceleration=False)


@pytest.fixture
def classifier():
    return MotionSignalClassifier(MotionSettings())


def test_startup_guard_suppresses_everything(classifier):
    state = classifier.initial_state(1000)
    rng = random.Random(7)
    for _ in range(200):
        ts = 1000 + rng.randrange(0, 2000)
        sample = MotionSample(
            x=rng.uniform(-200, 200),
            y=rng.uniform(-200, 200),
            z=rng.uniform(-200, 200),
            timestamp_ms=ts,
            has_linear_acceleration=rng.random() < 0.5,
        )
        decision, state = classifier.classify(sample, state)
        assert decision is Decision.NONE


def test_guard_ends_at_two_seconds(classifier):
    state = classifier.initial_state(0)
    assert classifier.classify(linear(1999, 100.0), state)[0] is Decision.NONE
    assert classifier.classify(linear(2000, 100.0), state)[0] is Decision.SHAKE


def test_guard_leaves_fallback_history_untouched(classifier):
    state = classifier.initial_state(0)
    _, after = classifier.classify(gravity(500, 1.0, 2.0, 9.8), state)
    assert after == state


def test_linear_path_threshold(classifier):
    state = classifier.initial_state(0)
    assert classifier.classify(linear(3000, 25.0), state)[0] is Decision.NONE
    # 15² + 20² = 25², still not strictly above
    assert classifier.classify(linear(3000, 15.0, 20.0), state)[0] is Decision.NONE
    assert classifier.classify(linear(3000, 15.0, 20.0, 0.5), state)[0] is Decision.SHAKE


def test_linear_path_fires_for_every_strong_sample(classifier):
    state = classifier.initial_state(0)
    decisions = []
    for ts in range(3000, 3010):
        decision, state = classifier.classify(linear(ts, 30.0), state)
        decisions.append(decision)
    assert decisions == [Decision.SHAKE] * 10


def test_linear_path_needs_no_history(classifier):
    state = classifier.initial_state(0)
    decision, after = classifier.classify(linear(2500, 0.0, 0.0, 26.0), state)
    assert decision is Decision.SHAKE
    assert after.last_eval_ms is None


def test_fallback_first_evaluation_only_seeds(classifier):
    state = classifier.initial_state(0)
    decision, state = classifier.classify(gravity(2000, 50.0, 50.0, 50.0), state)
    assert decision is Decision.NONE
    assert state.last_eval_ms == 2000
    assert (state.last_x, state.last_y, state.last_z) == (50.0, 50.0, 50.0)


def test_fallback_speed_above_threshold(classifier):
    state = classifier.initial_state(0)
    _, state = classifier.classify(gravity(2000, 0.0, 0.0, 9.8), state)
    # (5 + 5 + 0) / 100ms * 10000 = 1000 > 800
    decision, state = classifier.classify(gravity(2100, 5.0, 5.0, 9.8), state)
    assert decision is Decision.SHAKE
    assert state.last_eval_ms == 2100


def test_fallback_gentle_motion(classifier):
    state = classifier.initial_state(0)
    _, state = classifier.classify(gravity(2000, 0.0, 0.0, 9.8), state)
    # (0.5 + 0.5) / 100 * 10000 = 100
    decision, state = classifier.classify(gravity(2100, 0.5, 0.5, 9.8), state)
    assert decision is Decision.NONE
    assert (state.last_x, state.last_y) == (0.5, 0.5)


def test_fallback_throttle(classifier):
    state = classifier.initial_state(0)
    _, state = classifier.classify(gravity(2000, 0.0, 0.0, 9.8), state)
    decision, throttled = classifier.classify(gravity(2050, 40.0, 40.0, 40.0), state)
    assert decision is Decision.NONE
    assert throttled == state


def test_fallback_threshold_is_tunable():
    strict = MotionSignalClassifier(MotionSettings(gravity_threshold=1500.0))
    state = strict.initial_state(0)
    _, state = strict.classify(gravity(2000, 0.0, 0.0, 9.8), state)
    assert strict.classify(gravity(2100, 5.0, 5.0, 9.8), state)[0] is Decision.NONE


def test_malformed_sample_is_ignored(classifier):
    state = classifier.initial_state(0)
    decision, after = classifier.classify(linear(5000, math.nan, 40.0), state)
    assert decision is Decision.NONE
    assert after is state
