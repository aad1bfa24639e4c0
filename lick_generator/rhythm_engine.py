"""Rhythm synthesis for lick generation.

Generators plan the rhythm of a phrase before assigning pitches: a
:class:`RhythmPattern` is expanded into a list of beat durations covering
the phrase exactly, with a configurable amount of random variation.
Decoupling rhythm from pitch mirrors a typical composing workflow where the
groove is established first and notes are layered on afterwards.

All randomness is drawn from an injectable ``random.Random`` instance so a
seeded generator reproduces the same durations.

Example
-------
>>> import random
>>> generate_rhythm_durations(2, RHYTHM_PATTERNS["straight-quarters"], 0, random.Random(1))
[1, 1]
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

__all__ = [
    "RhythmPattern",
    "RHYTHM_PATTERNS",
    "FEELS",
    "VARIATION_MULTIPLIERS",
    "generate_rhythm_durations",
    "apply_swing",
    "beats_to_seconds",
    "seconds_to_beats",
    "quantize_to_grid",
    "generate_rests",
    "pattern_for_feel",
]

FEELS: Tuple[str, ...] = ("straight", "swing", "syncopated")

# Multipliers applied to a pattern step when variation triggers.
VARIATION_MULTIPLIERS: Tuple[float, ...] = (0.5, 0.75, 1, 1.5, 2)

# Remaining beat counts smaller than this are treated as zero so floating
# point drift never yields a vanishingly short final note.
_EPSILON = 1e-9


@dataclass(frozen=True)
class RhythmPattern:
    """A named, cyclic sequence of beat durations with a feel tag."""

    name: str
    feel: str
    durations: Tuple[float, ...]


RHYTHM_PATTERNS: Dict[str, RhythmPattern] = {
    "straight-eighths": RhythmPattern("Straight Eighths", "straight", (0.5,) * 8),
    "straight-quarters": RhythmPattern("Straight Quarters", "straight", (1, 1, 1, 1)),
    "straight-sixteenths": RhythmPattern("Straight Sixteenths", "straight", (0.25,) * 16),
    # Long-short pairs approximating triplet swing.
    "swing-eighths": RhythmPattern(
        "Swing Eighths", "swing", (0.67, 0.33, 0.67, 0.33, 0.67, 0.33, 0.67, 0.33)
    ),
    "syncopated-1": RhythmPattern(
        "Syncopated 1", "syncopated", (0.75, 0.25, 0.5, 0.5, 0.75, 0.25, 0.5, 0.5)
    ),
    "syncopated-2": RhythmPattern(
        "Syncopated 2", "syncopated", (0.5, 0.25, 0.25, 0.5, 0.5, 0.5, 0.25, 0.25)
    ),
    "mixed-1": RhythmPattern("Mixed 1", "straight", (1, 0.5, 0.5, 0.5, 0.5, 1)),
}


def generate_rhythm_durations(
    total_beats: float,
    pattern: RhythmPattern,
    variation: float = 0.0,
    rng: Optional[random.Random] = None,
) -> List[float]:
    """Expand ``pattern`` into durations summing to ``total_beats``.

    Parameters
    ----------
    total_beats:
        Length of the phrase in beats. Non-positive values yield an empty
        list.
    pattern:
        Pattern whose durations are consumed cyclically.
    variation:
        Probability (``0-1``) that any single step is scaled by one of
        :data:`VARIATION_MULTIPLIERS`.
    rng:
        Random source. Defaults to the module level ``random`` functions.

    Returns
    -------
    List[float]
        Durations in beats. The final step is clipped so the cumulative sum
        never exceeds ``total_beats``.

    Raises
    ------
    ValueError
        If ``pattern`` has no durations or contains a non-positive one.
    """

    if not pattern.durations:
        raise ValueError("pattern must contain at least one duration")
    if any(d <= 0 for d in pattern.durations):
        raise ValueError("pattern durations must be positive")
    rng = rng or random

    durations: List[float] = []
    current = 0.0
    step = 0
    while total_beats - current > _EPSILON:
        duration = pattern.durations[step % len(pattern.durations)]
        if variation > 0 and rng.random() < variation:
            duration *= rng.choice(VARIATION_MULTIPLIERS)
        if current + duration > total_beats:
            duration = total_beats - current
        durations.append(duration)
        current += duration
        step += 1
    return durations


def apply_swing(times: Sequence[float], swing_amount: float = 0.33) -> List[float]:
    """Delay onsets that fall on an off-beat eighth.

    Any time whose fractional beat position is within ``0.01`` of ``0.5``
    moves to ``floor(t) + 0.5 + swing_amount * 0.5``. Other onsets are
    returned unchanged.
    """

    swung = []
    for time in times:
        if abs((time % 1) - 0.5) < 0.01:
            swung.append(math.floor(time) + 0.5 + swing_amount * 0.5)
        else:
            swung.append(time)
    return swung


def beats_to_seconds(beats: float, tempo: float) -> float:
    """Convert ``beats`` to seconds at ``tempo`` beats per minute."""

    return beats * 60 / tempo


def seconds_to_beats(seconds: float, tempo: float) -> float:
    """Convert ``seconds`` to beats at ``tempo`` beats per minute."""

    return seconds * tempo / 60


def quantize_to_grid(time: float, grid_size: float) -> float:
    """Snap ``time`` (beats) to the nearest multiple of ``grid_size``."""

    if grid_size <= 0:
        raise ValueError("grid_size must be positive")
    return round(time / grid_size) * grid_size


def generate_rests(
    note_count: int, rest_probability: float, rng: Optional[random.Random] = None
) -> List[bool]:
    """Return ``note_count`` flags marking which slots should be rests."""

    rng = rng or random
    return [rng.random() < rest_probability for _ in range(note_count)]


# Patterns each feel draws from, with the relative weight of each choice.
_FEEL_PATTERNS: Dict[str, Tuple[Tuple[str, float], ...]] = {
    "straight": (("straight-eighths", 0.7), ("straight-sixteenths", 0.3)),
    "swing": (("swing-eighths", 1.0),),
    "syncopated": (("syncopated-1", 0.5), ("syncopated-2", 0.5)),
}


def pattern_for_feel(
    feel: str,
    rng: Optional[random.Random] = None,
    choices: Optional[Dict[str, Sequence[Tuple[str, float]]]] = None,
) -> RhythmPattern:
    """Return a rhythm pattern appropriate for ``feel``.

    ``choices`` lets a generator override the default table with its own
    ``feel -> ((pattern_name, weight), ...)`` preferences. Feels missing from
    ``choices`` fall back to the default table.
    """

    rng = rng or random
    table = dict(_FEEL_PATTERNS)
    if choices:
        table.update(choices)
    options = table.get(feel, table["straight"])
    if len(options) == 1:
        return RHYTHM_PATTERNS[options[0][0]]
    names = [name for name, _ in options]
    weights = [weight for _, weight in options]
    return RHYTHM_PATTERNS[rng.choices(names, weights=weights, k=1)[0]]
