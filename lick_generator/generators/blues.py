"""Blues lick generator.

Works from the six-note blues scale (minor pentatonic plus the flat five)
regardless of the configured scale.  The phrase is split into one-bar
"question" and "answer" phrases: questions hang on the fifth or the flat
seven, answers come home to the root.  Blue notes are occasionally bent,
simulated with a very short grace note a semitone below the target, and a
classic 6-b6-5-1 turnaround closes phrases that are long enough for one.

Modification Summary
--------------------
* Shuffle feel follows ``rhythm_feel == "swing"`` unless forced through
  :class:`BluesOptions`.
* The box position picks which region of the scale a phrase starts in.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..dynamics import is_downbeat
from ..models import GeneratorResult, Note
from ..note_utils import note_to_midi, pitch_class
from ..rhythm_engine import RHYTHM_PATTERNS, generate_rhythm_durations, pattern_for_feel
from ..scales import get_root_midi, get_scale_notes
from .base import MIN_SCALE_NOTES, GeneratorContext

__all__ = ["BluesOptions", "BluesGenerator", "BLUE_NOTE_INTERVALS", "TURNAROUND_INTERVALS"]

# Flat three, flat five and flat seven above the root.
BLUE_NOTE_INTERVALS = (3, 6, 10)

# Sixth, flat sixth, fifth, root.
TURNAROUND_INTERVALS = (9, 8, 7, 0)

# Fifth and flat seven leave a phrase hanging.
_QUESTION_INTERVALS = (7, 10)

# Blues lines sit between C2 and C7.
_REGISTER_LOW = 36
_REGISTER_HIGH = 96

_FALLBACK_OCTAVES = (3, 5)

_EPSILON = 1e-9


@dataclass(frozen=True)
class BluesOptions:
    """Tunables for :class:`BluesGenerator`.

    ``turnaround``, ``box_position`` and ``shuffle_feel`` default to
    ``None``, meaning "decide from the config and the random source".
    """

    bend_frequency: float = 0.3
    turnaround: Optional[bool] = None
    box_position: Optional[int] = None
    shuffle_feel: Optional[bool] = None
    rest_probability: float = 0.1
    bend_grace_beats: float = 0.1
    shuffle_long: float = 1.33
    shuffle_short: float = 0.67

    def __post_init__(self) -> None:
        if not 0 <= self.bend_frequency <= 1:
            raise ValueError("bend_frequency must be between 0 and 1")
        if self.box_position is not None and not 0 <= self.box_position <= 2:
            raise ValueError("box_position must be 0, 1 or 2")


class BluesGenerator:
    """Question/answer blues phrasing with bends and a turnaround."""

    algorithm = "blues"

    def __init__(self, context: GeneratorContext, options: Optional[BluesOptions] = None) -> None:
        self.ctx = context
        opts = options or BluesOptions()
        rng = context.rng
        config = context.config

        self.options = opts
        self.root_pc = pitch_class(config.key)
        self.scale_notes = self._blues_scale()
        self.use_turnaround = opts.turnaround if opts.turnaround is not None else config.length_bars >= 4
        self.box_position = opts.box_position if opts.box_position is not None else rng.randint(0, 2)
        if opts.shuffle_feel is not None:
            self.shuffle = opts.shuffle_feel
        else:
            self.shuffle = config.rhythm_feel == "swing" or rng.random() < 0.5

    def _blues_scale(self) -> List[str]:
        key = self.ctx.config.key
        notes = [
            n for n in get_scale_notes(key, "blues", self.ctx.octave_range)
            if _REGISTER_LOW <= note_to_midi(n) <= _REGISTER_HIGH
        ]
        if len(notes) < MIN_SCALE_NOTES:
            notes = get_scale_notes(key, "blues", _FALLBACK_OCTAVES)
        return notes

    # -- pitch helpers ------------------------------------------------
    def interval_of(self, midi: int) -> int:
        return (midi - self.root_pc) % 12

    def is_blue_note(self, midi: int) -> bool:
        return self.interval_of(midi) in BLUE_NOTE_INTERVALS

    def note_at(self, index: int) -> str:
        return self.scale_notes[max(0, min(index, len(self.scale_notes) - 1))]

    def velocity(self, midi: int, beat_in_bar: float) -> float:
        velocity = 0.7
        if is_downbeat(beat_in_bar):
            velocity += 0.15
        if self.is_blue_note(midi):
            velocity += 0.05
        velocity += self.ctx.rng.uniform(-0.05, 0.05)
        return max(0.4, min(1.0, velocity))

    # -- generation ---------------------------------------------------
    def generate(self) -> GeneratorResult:
        ctx = self.ctx
        total = ctx.total_beats
        notes: List[Note] = []
        current_beat = 0.0
        phrase_index = 0

        while current_beat < total - _EPSILON:
            remaining = total - current_beat
            if self.use_turnaround and remaining <= 4 + _EPSILON:
                notes.extend(self.turnaround(current_beat, remaining))
                break
            length = min(4.0, remaining)
            notes.extend(self.phrase(current_beat, length, is_question=phrase_index % 2 == 0))
            current_beat += length
            phrase_index += 1

        return GeneratorResult(ctx.finalize(notes), self.algorithm)

    def phrase(self, start_beat: float, length: float, is_question: bool) -> List[Note]:
        """Return a one-bar phrase ending on a question or answer note."""

        ctx, opts = self.ctx, self.options
        rng = ctx.rng
        if self.shuffle:
            pattern = RHYTHM_PATTERNS["swing-eighths"]
        else:
            pattern = pattern_for_feel(ctx.config.rhythm_feel, rng)
        durations = generate_rhythm_durations(length, pattern, 0.2, rng)

        third = len(self.scale_notes) // 3
        index = max(0, min(len(self.scale_notes) - 1, third // 2 + self.box_position * third))

        notes: List[Note] = []
        beat = start_beat
        for i, duration in enumerate(durations):
            first, last = i == 0, i == len(durations) - 1
            if not first and not last and rng.random() < opts.rest_probability:
                beat += duration
                continue

            if last:
                pitch = self.question_note(index) if is_question else self.answer_note(index)
            else:
                index = max(0, min(len(self.scale_notes) - 1, index + rng.choice((-2, -1, -1, 1, 1, 2))))
                pitch = self.note_at(index)

            midi = note_to_midi(pitch)
            if (
                self.is_blue_note(midi)
                and duration >= 0.5
                and rng.random() < opts.bend_frequency
            ):
                notes.extend(self.bend(midi, beat, duration))
            else:
                note = ctx.create_note(pitch, beat, duration * 0.9)
                note.velocity = self.velocity(midi, beat - start_beat)
                notes.append(note)
            beat += duration
        return notes

    def question_note(self, near: int) -> str:
        """Return the fifth or flat seven near ``near``, preferring octave 4."""

        candidates = [
            (i, n) for i, n in enumerate(self.scale_notes)
            if self.interval_of(note_to_midi(n)) in _QUESTION_INTERVALS and abs(i - near) <= 5
        ]
        if not candidates:
            return self.note_at(near)
        middle = [c for c in candidates if note_to_midi(c[1]) // 12 - 1 == 4]
        return self.ctx.rng.choice(middle or candidates)[1]

    def answer_note(self, near: int) -> str:
        """Return the root closest to index ``near``."""

        roots = [
            (i, n) for i, n in enumerate(self.scale_notes)
            if self.interval_of(note_to_midi(n)) == 0
        ]
        if not roots:
            return self.note_at(near)
        return min(roots, key=lambda item: abs(item[0] - near))[1]

    def bend(self, target_midi: int, start_beat: float, duration: float) -> List[Note]:
        """Grace note a semitone below sliding into ``target_midi``."""

        ctx = self.ctx
        grace_beats = self.options.bend_grace_beats
        grace = ctx.create_midi_note(target_midi - 1, start_beat, grace_beats, 0.6)
        main = ctx.create_midi_note(
            target_midi, start_beat + grace_beats, (duration - grace_beats) * 0.9, 0.85
        )
        return [grace, main]

    def turnaround(self, start_beat: float, length: float) -> List[Note]:
        """Descending 6-b6-5-1 line filling the final ``length`` beats."""

        ctx, opts = self.ctx, self.options
        root = get_root_midi(ctx.config.key, 4)
        slot = length / len(TURNAROUND_INTERVALS)

        notes = []
        beat = start_beat
        for i, interval in enumerate(TURNAROUND_INTERVALS):
            duration = slot
            if self.shuffle:
                duration = slot * (opts.shuffle_long if i % 2 == 0 else opts.shuffle_short)
            last = i == len(TURNAROUND_INTERVALS) - 1
            if last:
                # The root rings to the end of the phrase.
                duration = start_beat + length - beat
            velocity = 0.9 if last else 0.7
            notes.append(ctx.create_midi_note(root + interval, beat, duration * 0.95, velocity))
            beat += duration
        return notes
