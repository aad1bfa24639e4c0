"""Scale tables and scale-degree helpers.

Every generator walks an ordered list of *scale notes* built from a
:class:`ScaleDefinition`, a key and an octave range.  The helpers in this
module produce that list and answer the questions generators keep asking
about it: which degree does a pitch occupy, is it a chord tone, and which
in-scale pitch sits closest to an arbitrary MIDI number.

Usage Example
-------------
>>> get_scale_notes("C", "major", (4, 4))
['C4', 'D4', 'E4', 'F4', 'G4', 'A4', 'B4']
>>> get_scale_degree("G4", "C", "major")
5
>>> is_chord_tone("D4", "C", "major")
False
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Optional, Sequence, Tuple

from .note_utils import (
    MIDI_MAX,
    MIDI_MIN,
    NOTE_TO_SEMITONE,
    midi_to_note,
    note_to_midi,
    octave_crossing,
    pitch_class,
)

__all__ = [
    "ScaleDefinition",
    "SCALE_DEFINITIONS",
    "KEYS",
    "MIN_OCTAVE",
    "MAX_OCTAVE",
    "FALLBACK_CHORD_DEGREES",
    "canonical_key",
    "canonical_scale",
    "get_root_midi",
    "get_scale_notes",
    "get_scale_degree",
    "is_chord_tone",
    "get_note_at_degree",
    "get_neighboring_notes",
    "closest_scale_note",
]

# ``MIN_OCTAVE`` and ``MAX_OCTAVE`` constrain the octave range accepted by
# :class:`~lick_generator.models.GeneratorConfig`. MIDI notes span roughly
# C-1 through G9 so this subset keeps every scale root addressable.
MIN_OCTAVE = 0
MAX_OCTAVE = 8

# Degrees used as chord tones when a scale lists none of its own.
FALLBACK_CHORD_DEGREES: Tuple[int, ...] = (1, 3, 5)

KEYS: Tuple[str, ...] = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")


@dataclass(frozen=True)
class ScaleDefinition:
    """Immutable description of a scale.

    ``intervals`` are ascending semitone offsets from the root and define
    the number of degrees. ``chord_tones`` lists the 1-indexed degrees that
    are harmonically stable.
    """

    name: str
    intervals: Tuple[int, ...]
    chord_tones: Tuple[int, ...]

    @property
    def degree_count(self) -> int:
        return len(self.intervals)


SCALE_DEFINITIONS: Dict[str, ScaleDefinition] = {
    "major": ScaleDefinition("Major", (0, 2, 4, 5, 7, 9, 11), (1, 3, 5, 7)),
    "minor": ScaleDefinition("Natural Minor", (0, 2, 3, 5, 7, 8, 10), (1, 3, 5, 7)),
    "pentatonic-major": ScaleDefinition("Major Pentatonic", (0, 2, 4, 7, 9), (1, 3, 5)),
    "pentatonic-minor": ScaleDefinition("Minor Pentatonic", (0, 3, 5, 7, 10), (1, 3, 5)),
    # Degree 4 of the blues scale is the flat five; 1, 4 and 5 mark the
    # root, b5 and 5 as the notes blues lines lean on.
    "blues": ScaleDefinition("Blues", (0, 3, 5, 6, 7, 10), (1, 4, 5)),
    "dorian": ScaleDefinition("Dorian", (0, 2, 3, 5, 7, 9, 10), (1, 3, 5, 7)),
    "mixolydian": ScaleDefinition("Mixolydian", (0, 2, 4, 5, 7, 9, 10), (1, 3, 5, 7)),
    "phrygian": ScaleDefinition("Phrygian", (0, 1, 3, 5, 7, 8, 10), (1, 3, 5, 7)),
    "lydian": ScaleDefinition("Lydian", (0, 2, 4, 6, 7, 9, 11), (1, 3, 5, 7)),
}


def canonical_key(name: str) -> str:
    """Return the canonical spelling for the key ``name``.

    Lookups are case-insensitive and accept both sharp and flat spellings
    (``"bb"`` -> ``"Bb"``).

    Raises
    ------
    ValueError
        If ``name`` is not a known pitch class.
    """

    stripped = name.strip()
    for spelling in NOTE_TO_SEMITONE:
        if spelling.lower() == stripped.lower():
            return spelling
    raise ValueError(f"Unknown key: {name}")


def canonical_scale(name: str) -> str:
    """Return the scale id matching ``name`` or raise ``ValueError``."""

    scale_id = name.strip().lower().replace("_", "-").replace(" ", "-")
    if scale_id not in SCALE_DEFINITIONS:
        raise ValueError(f"Unknown scale: {name}")
    return scale_id


def _definition(scale_name: str) -> ScaleDefinition:
    try:
        return SCALE_DEFINITIONS[scale_name]
    except KeyError:
        raise ValueError(f"Unknown scale: {scale_name}") from None


def get_root_midi(key: str, octave: int) -> int:
    """Return the MIDI number of ``key`` in ``octave`` (``C`` 4 -> 60, ``Cb`` 4 -> 59)."""

    return pitch_class(key) + octave_crossing(key) + (octave + 1) * 12


def get_scale_notes(
    key: str, scale_name: str, octave_range: Sequence[int]
) -> List[str]:
    """Return every pitch of the scale across ``octave_range``.

    Parameters
    ----------
    key:
        Root pitch class such as ``"C"`` or ``"F#"``.
    scale_name:
        Identifier from :data:`SCALE_DEFINITIONS`.
    octave_range:
        Inclusive ``(min_octave, max_octave)`` pair.

    Returns
    -------
    List[str]
        Ascending note names. Pitches outside ``0-127`` are skipped.
    """

    return list(_scale_notes(key, scale_name, int(octave_range[0]), int(octave_range[1])))


@lru_cache(maxsize=None)
def _scale_notes(key: str, scale_name: str, min_octave: int, max_octave: int) -> Tuple[str, ...]:
    # Cached as a tuple so callers always receive a fresh list and can never
    # mutate the shared result.
    definition = _definition(scale_name)
    notes = []
    for octave in range(min_octave, max_octave + 1):
        root = get_root_midi(key, octave)
        for interval in definition.intervals:
            midi = root + interval
            if MIDI_MIN <= midi <= MIDI_MAX:
                notes.append(midi_to_note(midi))
    return tuple(notes)


def get_scale_degree(note: str, key: str, scale_name: str) -> Optional[int]:
    """Return the 1-indexed degree of ``note`` within the scale or ``None``."""

    definition = _definition(scale_name)
    interval = (note_to_midi(note) - pitch_class(key)) % 12
    try:
        return definition.intervals.index(interval) + 1
    except ValueError:
        return None


def is_chord_tone(note: str, key: str, scale_name: str) -> bool:
    """Return ``True`` when ``note`` falls on a listed chord-tone degree."""

    degree = get_scale_degree(note, key, scale_name)
    if degree is None:
        return False
    return degree in _definition(scale_name).chord_tones


def get_note_at_degree(key: str, scale_name: str, degree: int, octave: int) -> str:
    """Return the note at 1-indexed ``degree`` starting from ``octave``.

    Degrees beyond the scale length continue into the next octave and
    degrees below ``1`` reach into the octave below, so ``degree=8`` in a
    seven note scale is the root one octave up.
    """

    definition = _definition(scale_name)
    count = definition.degree_count
    octave_offset, index = divmod(degree - 1, count)
    midi = get_root_midi(key, octave + octave_offset) + definition.intervals[index]
    return midi_to_note(midi)


def closest_scale_note(target_midi: int, scale_notes: Sequence[str]) -> str:
    """Return the entry of ``scale_notes`` nearest to ``target_midi``.

    Ties resolve toward the earlier (lower) candidate. ``scale_notes`` must
    not be empty.
    """

    if not scale_notes:
        raise ValueError("scale_notes must not be empty")
    return min(scale_notes, key=lambda n: abs(note_to_midi(n) - target_midi))


def get_neighboring_notes(
    note: str, key: str, scale_name: str, octave_range: Sequence[int]
) -> Tuple[Optional[str], Optional[str]]:
    """Return the in-scale ``(below, above)`` neighbours of ``note``.

    Pitches outside the scale are first snapped to the closest scale note.
    Either side is ``None`` at the edges of the range.
    """

    scale_notes = get_scale_notes(key, scale_name, octave_range)
    if not scale_notes:
        return None, None
    if note in scale_notes:
        index = scale_notes.index(note)
    else:
        index = scale_notes.index(closest_scale_note(note_to_midi(note), scale_notes))
    below = scale_notes[index - 1] if index > 0 else None
    above = scale_notes[index + 1] if index < len(scale_notes) - 1 else None
    return below, above
