"""Unit tests for the rhythm synthesis helpers."""

import importlib
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

rhythm = importlib.import_module("lick_generator.rhythm_engine")


def test_durations_without_variation_follow_pattern():
    pattern = rhythm.RHYTHM_PATTERNS["straight-quarters"]
    assert rhythm.generate_rhythm_durations(2, pattern, 0, random.Random(1)) == [1, 1]


@pytest.mark.parametrize("total", [0.25, 1, 3.3, 4, 16])
@pytest.mark.parametrize("name", sorted(rhythm.RHYTHM_PATTERNS))
def test_durations_sum_to_total(name, total):
    """Every pattern fills the phrase exactly, even with heavy variation."""

    durations = rhythm.generate_rhythm_durations(
        total, rhythm.RHYTHM_PATTERNS[name], 0.8, random.Random(42)
    )
    assert sum(durations) == pytest.approx(total)
    assert all(d > 0 for d in durations)


def test_final_step_is_clipped():
    pattern = rhythm.RHYTHM_PATTERNS["straight-quarters"]
    assert rhythm.generate_rhythm_durations(2.5, pattern, 0) == [1, 1, 0.5]


def test_non_positive_total_yields_no_durations():
    pattern = rhythm.RHYTHM_PATTERNS["straight-eighths"]
    assert rhythm.generate_rhythm_durations(0, pattern) == []


def test_invalid_patterns_are_rejected():
    with pytest.raises(ValueError):
        rhythm.generate_rhythm_durations(4, rhythm.RhythmPattern("Empty", "straight", ()))
    with pytest.raises(ValueError):
        rhythm.generate_rhythm_durations(4, rhythm.RhythmPattern("Zero", "straight", (0.5, 0)))


def test_variation_uses_multiplier_set():
    pattern = rhythm.RhythmPattern("Ones", "straight", (1,))
    durations = rhythm.generate_rhythm_durations(200, pattern, 1.0, random.Random(3))
    # Every step except the clipped final one is a multiplier of one beat.
    assert set(durations[:-1]) <= set(rhythm.VARIATION_MULTIPLIERS)


def test_seeded_durations_are_reproducible():
    pattern = rhythm.RHYTHM_PATTERNS["syncopated-1"]
    first = rhythm.generate_rhythm_durations(8, pattern, 0.5, random.Random(9))
    second = rhythm.generate_rhythm_durations(8, pattern, 0.5, random.Random(9))
    assert first == second


def test_apply_swing_moves_offbeats_only():
    swung = rhythm.apply_swing([0, 0.5, 1, 1.5, 1.25])
    assert swung[0] == 0
    assert swung[1] == pytest.approx(0.665)
    assert swung[2] == 1
    assert swung[3] == pytest.approx(1.665)
    assert swung[4] == 1.25


def test_beat_second_conversion():
    assert rhythm.beats_to_seconds(4, 120) == 2
    assert rhythm.seconds_to_beats(2, 120) == 4
    assert rhythm.beats_to_seconds(1, 90) == pytest.approx(2 / 3)


def test_quantize_to_grid():
    assert rhythm.quantize_to_grid(1.12, 0.25) == 1.0
    assert rhythm.quantize_to_grid(1.2, 0.25) == 1.25
    with pytest.raises(ValueError):
        rhythm.quantize_to_grid(1.0, 0)


def test_generate_rests():
    assert rhythm.generate_rests(4, 0.0, random.Random(1)) == [False] * 4
    assert rhythm.generate_rests(4, 1.0, random.Random(1)) == [True] * 4


def test_pattern_for_feel():
    rng = random.Random(5)
    assert rhythm.pattern_for_feel("swing", rng).feel == "swing"
    assert rhythm.pattern_for_feel("syncopated", rng).feel == "syncopated"
    override = {"straight": (("mixed-1", 1.0),)}
    assert rhythm.pattern_for_feel("straight", rng, override).name == "Mixed 1"
    # Feels missing from the override use the default table.
    assert rhythm.pattern_for_feel("swing", rng, override).name == "Swing Eighths"
