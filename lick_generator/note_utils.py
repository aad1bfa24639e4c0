"""Utility functions for translating note names to MIDI numbers.

This module groups helpers dealing with note representation conversions.
Generators keep pitches as note names (``"C#4"``) so the output stays
readable, and convert to MIDI numbers whenever interval arithmetic is
required.

Example
-------
>>> from lick_generator.note_utils import note_to_midi
>>> note_to_midi("C4")
60
>>> midi_to_note(61)
'C#4'
"""

# Modification Summary
# ---------------------
# * ``note_to_midi`` accepts flat spellings and lowercase letters so keys
#   such as ``"bb"`` resolve to the same value as ``"A#"``.
# * Added ``clamp_midi`` so chromatic ornaments computed around the edges of
#   the keyboard never produce invalid MIDI numbers.
# * ``pitch_class`` exposes the semitone offset of a note name so scale
#   lookups do not need to parse octaves.
# * ``B#`` and ``Cb`` resolve into the neighbouring octave, as in scientific
#   pitch notation (``B#3`` and ``C4`` are both 60).

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import List

__all__ = [
    "NOTE_TO_SEMITONE",
    "NOTES",
    "MIDI_MIN",
    "MIDI_MAX",
    "note_to_midi",
    "midi_to_note",
    "clamp_midi",
    "pitch_class",
    "octave_crossing",
    "get_interval",
]

logger = logging.getLogger(__name__)

# NOTE_TO_SEMITONE maps both sharp and flat spellings to the correct
# semitone offset within an octave so enharmonic keys (``Db`` and ``C#``)
# resolve to the same pitch class.
NOTE_TO_SEMITONE = {
    "C": 0,
    "B#": 0,
    "C#": 1,
    "Db": 1,
    "D": 2,
    "D#": 3,
    "Eb": 3,
    "E": 4,
    "Fb": 4,
    "E#": 5,
    "F": 5,
    "F#": 6,
    "Gb": 6,
    "G": 7,
    "G#": 8,
    "Ab": 8,
    "A": 9,
    "A#": 10,
    "Bb": 10,
    "B": 11,
    "Cb": 11,
}

# B# and Cb sound in the neighbouring octave of the one they are written in.
OCTAVE_CROSSINGS = {"B#": 12, "Cb": -12}

# Sharp spellings used when converting MIDI numbers back to names.
NOTES: List[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

MIDI_MIN = 0
MIDI_MAX = 127

_NOTE_RE = re.compile(r"([A-Ga-g])([#b]?)(-?\d+)")


def _normalise_name(letter: str, accidental: str) -> str:
    return letter.upper() + accidental


@lru_cache(maxsize=None)
def note_to_midi(note: str) -> int:
    """Convert a note string such as ``C#4`` into a MIDI number.

    Parameters
    ----------
    note:
        Note name including octave. Octaves may be negative (``C-1``).

    Returns
    -------
    int
        MIDI note number in the range ``0-127``.

    Raises
    ------
    ValueError
        If ``note`` is malformed or the computed value falls outside the
        ``0-127`` MIDI range.
    """

    match = _NOTE_RE.fullmatch(note.strip())
    if not match:
        logger.error("Invalid note format: %s", note)
        raise ValueError(f"Invalid note format: {note}")

    letter, accidental, octave_str = match.groups()
    name = _normalise_name(letter, accidental)
    # Scientific pitch notation puts middle C in octave 4 while MIDI counts
    # from octave -1, hence the ``+ 1``.
    midi_val = NOTE_TO_SEMITONE[name] + OCTAVE_CROSSINGS.get(name, 0)
    midi_val += (int(octave_str) + 1) * 12

    if not MIDI_MIN <= midi_val <= MIDI_MAX:
        logger.error("MIDI value out of range: %s -> %d", note, midi_val)
        raise ValueError(
            f"Computed MIDI value {midi_val} out of range 0-127 for note {note}"
        )
    return midi_val


def midi_to_note(midi_note: int) -> str:
    """Convert a MIDI number into a note name using sharps.

    >>> midi_to_note(60)
    'C4'
    >>> midi_to_note(-1)
    Traceback (most recent call last):
        ...
    ValueError: MIDI note -1 out of range 0-127
    """

    if not MIDI_MIN <= midi_note <= MIDI_MAX:
        raise ValueError(f"MIDI note {midi_note} out of range 0-127")
    octave = midi_note // 12 - 1
    return f"{NOTES[midi_note % 12]}{octave}"


def clamp_midi(midi_note: int) -> int:
    """Clamp ``midi_note`` into the valid ``0-127`` range."""

    return max(MIDI_MIN, min(MIDI_MAX, midi_note))


@lru_cache(maxsize=None)
def pitch_class(name: str) -> int:
    """Return the semitone offset (0-11) of a key or note name.

    ``name`` may carry an octave (``"Bb3"``) or be a bare pitch class
    (``"bb"``). Unknown names raise ``ValueError``.
    """

    match = re.fullmatch(r"([A-Ga-g])([#b]?)(-?\d+)?", name.strip())
    if not match:
        raise ValueError(f"Unknown note name: {name}")
    return NOTE_TO_SEMITONE[_normalise_name(match.group(1), match.group(2))]


def octave_crossing(name: str) -> int:
    """Semitones to add when ``name`` is spelled across the C boundary.

    >>> octave_crossing("Cb"), octave_crossing("B#"), octave_crossing("Bb")
    (-12, 12, 0)
    """

    match = re.fullmatch(r"([A-Ga-g])([#b]?)(-?\d+)?", name.strip())
    if not match:
        raise ValueError(f"Unknown note name: {name}")
    return OCTAVE_CROSSINGS.get(_normalise_name(match.group(1), match.group(2)), 0)


def get_interval(note1: str, note2: str) -> int:
    """Return the interval between ``note1`` and ``note2`` in semitones."""

    return abs(note_to_midi(note1) - note_to_midi(note2))
