"""MIDI export for generated licks.

Modification summary
--------------------
* ``write_midi`` creates the destination directory automatically so callers
  can pass a path in a new folder without preparing it.
* Imports from ``mido`` are deferred inside :func:`sequence_to_midi` so the
  engine loads even when the optional dependency is missing.
* Note events are collected with absolute tick positions and sorted before
  being converted to delta times, which keeps overlapping notes (bends and
  passing tones) correctly ordered.

The rendered file holds a single track in 4/4 carrying the sequence's tempo
and a track name of the form ``"C pentatonic-minor Lick - blues"``.
"""

from __future__ import annotations

import dataclasses
import logging
import random
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

if TYPE_CHECKING:
    from mido import MidiFile

from .dynamics import humanize_notes
from .models import Sequence

__all__ = ["sequence_to_midi", "write_midi", "track_name", "TICKS_PER_BEAT"]

logger = logging.getLogger(__name__)

TICKS_PER_BEAT = 480

# ``note_off`` sorts before ``note_on`` at the same tick so repeated pitches
# retrigger cleanly.
_EVENT_ORDER = {"note_off": 0, "note_on": 1}


def track_name(sequence: Sequence) -> str:
    """Return the descriptive track name written into the MIDI file."""

    return f"{sequence.key} {sequence.scale} Lick - {sequence.algorithm}"


def _to_velocity(value: float) -> int:
    return max(1, min(127, round(value * 127)))


def sequence_to_midi(
    sequence: Sequence,
    humanize: bool = False,
    program: int = 0,
    rng: Optional[random.Random] = None,
) -> "MidiFile":
    """Render ``sequence`` to an in-memory ``MidiFile``.

    Parameters
    ----------
    sequence:
        Phrase to render. Note times are seconds and are converted to ticks
        using the sequence tempo.
    humanize:
        When ``True`` velocities receive a small random variation. The
        sequence itself is left untouched.
    program:
        General MIDI program number (0-127).
    rng:
        Random source for humanisation.

    Raises
    ------
    ImportError
        If ``mido`` is not installed.
    ValueError
        If ``program`` is out of range or the tempo is not positive.
    """

    try:
        import mido
        from mido import Message, MetaMessage, MidiFile, MidiTrack
    except ModuleNotFoundError as exc:
        raise ImportError(
            "mido is required to create MIDI files; install it with 'pip install mido'"
        ) from exc

    if sequence.tempo <= 0:
        raise ValueError("tempo must be positive")
    if not 0 <= program <= 127:
        raise ValueError("program must be between 0 and 127")

    notes = sequence.notes
    if humanize:
        # Work on copies so the caller's sequence keeps its velocities.
        notes = [dataclasses.replace(n) for n in notes]
        humanize_notes(notes, rng=rng)

    mid = MidiFile(ticks_per_beat=TICKS_PER_BEAT)
    track = MidiTrack()
    mid.tracks.append(track)

    track.append(MetaMessage("track_name", name=track_name(sequence), time=0))
    track.append(MetaMessage("set_tempo", tempo=mido.bpm2tempo(sequence.tempo), time=0))
    track.append(MetaMessage("time_signature", numerator=4, denominator=4, time=0))
    track.append(Message("program_change", program=program, time=0))

    ticks_per_second = TICKS_PER_BEAT * sequence.tempo / 60
    events: List[Tuple[int, str, int, int]] = []
    for note in notes:
        on = round(note.time * ticks_per_second)
        off = max(on + 1, round(note.end * ticks_per_second))
        velocity = _to_velocity(note.velocity)
        events.append((on, "note_on", note.midi, velocity))
        events.append((off, "note_off", note.midi, 0))

    events.sort(key=lambda e: (e[0], _EVENT_ORDER[e[1]]))
    previous = 0
    for tick, kind, midi, velocity in events:
        track.append(Message(kind, note=midi, velocity=velocity, time=tick - previous))
        previous = tick

    track.append(MetaMessage("end_of_track", time=0))
    return mid


def write_midi(
    sequence: Sequence,
    path: Union[str, Path],
    humanize: bool = False,
    program: int = 0,
) -> "MidiFile":
    """Render ``sequence`` and save it to ``path``.

    Parent directories are created as needed. ``OSError`` from the file
    system propagates unchanged.
    """

    mid = sequence_to_midi(sequence, humanize=humanize, program=program)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    mid.save(str(path))
    logger.info("Wrote %d notes to %s", len(sequence.notes), path)
    return mid
