"""Velocity shaping helpers.

Every generator routes its notes through :func:`shape_velocity` so licks
built with very different melodic logic still share the same dynamic
contour: chord tones sit a little louder than passing material, notes on
the beat receive an accent and a small random jitter keeps repeated notes
from sounding mechanical.
"""

from __future__ import annotations

import random
from typing import Iterable, Optional

__all__ = [
    "VELOCITY_MIN",
    "VELOCITY_MAX",
    "CHORD_TONE_VELOCITY",
    "NON_CHORD_TONE_VELOCITY",
    "DOWNBEAT_ACCENT",
    "VELOCITY_JITTER",
    "clamp_velocity",
    "is_downbeat",
    "shape_velocity",
    "humanize_notes",
]

VELOCITY_MIN = 0.3
VELOCITY_MAX = 1.0
CHORD_TONE_VELOCITY = 0.8
NON_CHORD_TONE_VELOCITY = 0.65
DOWNBEAT_ACCENT = 0.1
VELOCITY_JITTER = 0.05


def clamp_velocity(velocity: float) -> float:
    """Clamp ``velocity`` into ``[VELOCITY_MIN, VELOCITY_MAX]``."""

    return min(VELOCITY_MAX, max(VELOCITY_MIN, velocity))


def is_downbeat(beat_position: float) -> bool:
    """Return ``True`` when ``beat_position`` lands exactly on a beat."""

    return abs(beat_position - round(beat_position)) < 1e-9


def shape_velocity(
    chord_tone: bool,
    beat_position: float,
    rng: Optional[random.Random] = None,
) -> float:
    """Return the velocity for a note.

    Parameters
    ----------
    chord_tone:
        Whether the pitch is a chord tone of the active scale.
    beat_position:
        Onset in beats, used to detect downbeats.
    rng:
        Random source for the jitter. Defaults to the ``random`` module.
    """

    rng = rng or random
    velocity = CHORD_TONE_VELOCITY if chord_tone else NON_CHORD_TONE_VELOCITY
    if is_downbeat(beat_position):
        velocity += DOWNBEAT_ACCENT
    velocity += rng.uniform(-VELOCITY_JITTER, VELOCITY_JITTER)
    return clamp_velocity(velocity)


def humanize_notes(notes: Iterable, amount: float = 0.05, rng: Optional[random.Random] = None) -> None:
    """Jitter the ``velocity`` of ``notes`` in place by up to ``amount``.

    Results stay within the ``0.3-1.0`` range. Objects without a
    ``velocity`` attribute are skipped.
    """

    rng = rng or random
    for note in notes:
        if getattr(note, "velocity", None) is None:
            continue
        note.velocity = clamp_velocity(note.velocity + rng.uniform(-amount, amount))
