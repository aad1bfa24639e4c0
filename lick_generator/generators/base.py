"""Shared services for the lick generators.

Each algorithm receives a :class:`GeneratorContext` built from the caller's
:class:`~lick_generator.models.GeneratorConfig`.  The context owns the
per-call state every algorithm needs (the random source and the cached list
of scale notes) and implements the common operations: clamped index
lookups, chord-tone filtering, note construction and velocity shaping.
Algorithms compose a context rather than inheriting from a base class and
expose a single ``generate()`` method described by :class:`LickGenerator`.
"""

from __future__ import annotations

import logging
import random
from typing import List, Optional, Protocol, Sequence

from ..dynamics import clamp_velocity, shape_velocity
from ..models import GeneratorConfig, GeneratorResult, Note, next_note_id
from ..note_utils import clamp_midi, midi_to_note, note_to_midi, pitch_class
from ..rhythm_engine import beats_to_seconds, seconds_to_beats
from ..scales import (
    FALLBACK_CHORD_DEGREES,
    MAX_OCTAVE,
    MIN_OCTAVE,
    closest_scale_note,
    get_scale_degree,
    get_scale_notes,
    is_chord_tone,
)

__all__ = [
    "GeneratorContext",
    "LickGenerator",
    "MIN_SCALE_NOTES",
    "CHORD_TONE_BIAS",
]

logger = logging.getLogger(__name__)

# Phrases drawn from fewer distinct pitches than this sound like a drone, so
# the context widens the octave range until the scale reaches this size.
MIN_SCALE_NOTES = 5

# Probability that ``random_note(prefer_chord_tones=True)`` picks a chord tone.
CHORD_TONE_BIAS = 0.7

# Notes shorter than this after trimming are dropped.
_MIN_DURATION_BEATS = 1e-6


class LickGenerator(Protocol):
    """Interface implemented by every algorithm variant."""

    algorithm: str

    def generate(self) -> GeneratorResult:
        ...


class GeneratorContext:
    """Per-call state and helpers shared by all algorithms."""

    def __init__(self, config: GeneratorConfig, rng: Optional[random.Random] = None) -> None:
        self.config = config
        self.rng = rng if rng is not None else config.make_rng()
        self.octave_range = self._playable_octave_range()
        self.scale_notes: List[str] = get_scale_notes(config.key, config.scale, self.octave_range)
        self._chord_tones: Optional[List[str]] = None

    # -- construction -------------------------------------------------
    def _playable_octave_range(self) -> tuple[int, int]:
        """Return the configured octave range, widened if the scale is too small."""

        low, high = self.config.octave_range
        notes = get_scale_notes(self.config.key, self.config.scale, (low, high))
        while len(set(notes)) < MIN_SCALE_NOTES and (low > MIN_OCTAVE or high < MAX_OCTAVE):
            if high < MAX_OCTAVE:
                high += 1
            else:
                low -= 1
            notes = get_scale_notes(self.config.key, self.config.scale, (low, high))
        if (low, high) != tuple(self.config.octave_range):
            logger.warning(
                "Octave range %s yields too few %s notes; widened to %s",
                self.config.octave_range,
                self.config.scale,
                (low, high),
            )
        return low, high

    # -- scale lookups ------------------------------------------------
    @property
    def total_beats(self) -> float:
        return self.config.total_beats

    @property
    def scale_length(self) -> int:
        return len(self.scale_notes)

    def clamp_index(self, index: int) -> int:
        return max(0, min(index, self.scale_length - 1))

    def note_at(self, index: int) -> str:
        """Return the scale note at ``index`` clamped into range."""

        return self.scale_notes[self.clamp_index(index)]

    def index_of(self, pitch: str) -> int:
        """Return the index of ``pitch`` in the scale notes or ``-1``."""

        midi = note_to_midi(pitch)
        for i, note in enumerate(self.scale_notes):
            if note_to_midi(note) == midi:
                return i
        return -1

    def is_chord_tone(self, pitch: str) -> bool:
        return is_chord_tone(pitch, self.config.key, self.config.scale)

    def degree_of(self, pitch: str) -> Optional[int]:
        return get_scale_degree(pitch, self.config.key, self.config.scale)

    def is_root(self, pitch: str) -> bool:
        return note_to_midi(pitch) % 12 == pitch_class(self.config.key)

    @property
    def chord_tones(self) -> List[str]:
        """Scale notes on chord-tone degrees.

        Scales without listed chord tones fall back to degrees 1, 3 and 5;
        if even those are missing the lowest scale note is used so callers
        always receive a non-empty list.
        """

        if self._chord_tones is None:
            tones = [n for n in self.scale_notes if self.is_chord_tone(n)]
            if not tones:
                tones = [
                    n for n in self.scale_notes
                    if self.degree_of(n) in FALLBACK_CHORD_DEGREES
                ]
                logger.debug("Scale %s lists no chord tones; using degrees 1/3/5", self.config.scale)
            if not tones:
                tones = self.scale_notes[:1]
            self._chord_tones = tones
        return list(self._chord_tones)

    def random_note(self, prefer_chord_tones: bool = False) -> str:
        """Return a random scale note, biased toward chord tones if asked."""

        if prefer_chord_tones and self.rng.random() < CHORD_TONE_BIAS:
            return self.rng.choice(self.chord_tones)
        return self.rng.choice(self.scale_notes)

    def closest_scale_note(self, target_midi: int) -> str:
        return closest_scale_note(target_midi, self.scale_notes)

    def root_note(self, preferred_octaves: Sequence[int] = (4, 3)) -> str:
        """Return the tonic in a comfortable register.

        The first octave in ``preferred_octaves`` that holds the root wins;
        otherwise the middle root of the range, and finally the middle scale
        note.
        """

        roots = [n for n in self.scale_notes if self.is_root(n)]
        for octave in preferred_octaves:
            for note in roots:
                if note_to_midi(note) // 12 - 1 == octave:
                    return note
        if roots:
            return roots[len(roots) // 2]
        return self.scale_notes[self.scale_length // 2]

    # -- time and notes -----------------------------------------------
    def beats_to_seconds(self, beats: float) -> float:
        return beats_to_seconds(beats, self.config.tempo)

    def seconds_to_beats(self, seconds: float) -> float:
        return seconds_to_beats(seconds, self.config.tempo)

    def create_note(
        self,
        pitch: str,
        time_beats: float,
        duration_beats: float,
        velocity: float = 0.7,
    ) -> Note:
        """Build a :class:`Note` from beat-domain timing."""

        return Note(
            id=next_note_id(),
            pitch=pitch,
            midi=note_to_midi(pitch),
            time=self.beats_to_seconds(time_beats),
            duration=self.beats_to_seconds(duration_beats),
            velocity=clamp_velocity(velocity),
        )

    def create_midi_note(
        self,
        midi: int,
        time_beats: float,
        duration_beats: float,
        velocity: float = 0.7,
    ) -> Note:
        """Like :meth:`create_note` for a raw (possibly chromatic) MIDI number."""

        return self.create_note(midi_to_note(clamp_midi(midi)), time_beats, duration_beats, velocity)

    def apply_velocity(self, note: Note, beat_position: float) -> Note:
        """Shape ``note.velocity`` from chord-tone status and beat position."""

        note.velocity = shape_velocity(self.is_chord_tone(note.pitch), beat_position, self.rng)
        return note

    def finalize(self, notes: List[Note]) -> List[Note]:
        """Return ``notes`` ordered by time and contained in the phrase.

        Notes starting at or after the phrase end are dropped, notes
        crossing it are trimmed and all velocities are clamped.
        """

        end = self.beats_to_seconds(self.total_beats)
        min_duration = self.beats_to_seconds(_MIN_DURATION_BEATS)
        kept = []
        for note in sorted(notes, key=lambda n: n.time):
            if note.time < 0:
                note.time = 0.0
            if note.time + note.duration > end:
                note.duration = end - note.time
            if note.duration <= min_duration:
                continue
            note.velocity = clamp_velocity(note.velocity)
            kept.append(note)
        return kept
