"""Bebop line generator.

The line is planned around harmonic *targets*: a chord tone lands on every
strong beat (beats one and three of each bar), each chosen to voice-lead
smoothly from the previous target.  Targets are then decorated with the
approach vocabulary of bebop players (chromatic approach notes, enclosures
and double-chromatic approaches) and the gaps between targets are filled
with an eighth-note line heading toward the next target.

Example
-------
>>> from lick_generator import GeneratorConfig, generate_lick
>>> seq = generate_lick("bebop", GeneratorConfig(key="F", scale="mixolydian", seed=3))
>>> seq.algorithm
'bebop'
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, NamedTuple, Optional

from ..models import GeneratorResult, Note
from ..note_utils import note_to_midi
from .base import GeneratorContext

__all__ = ["BebopOptions", "BebopGenerator", "APPROACH_TYPES"]

APPROACH_TYPES = (
    "chromatic-above",
    "chromatic-below",
    "enclosure-above-first",
    "enclosure-below-first",
    "double-chromatic",
    "scale-step",
    "direct",
)

# Targets fall on beats 1 and 3 of every 4/4 bar.
TARGET_SPACING = 2
EIGHTH = 0.5


@dataclass(frozen=True)
class BebopOptions:
    """Tunables for :class:`BebopGenerator`.

    The probabilities are feel parameters; any value in ``0-1`` produces a
    plausible line.
    """

    approach_frequency: float = 0.7
    enclosure_frequency: float = 0.4
    double_chromatic_frequency: float = 0.3
    stepwise_preference: float = 0.7
    chromatic_passing_probability: float = 0.15
    direction_change_probability: float = 0.2
    target_velocity: float = 0.85
    swing_long: float = 1.3
    swing_short: float = 0.7


class _Target(NamedTuple):
    beat: float
    pitch: str


class BebopGenerator:
    """Target-note driven bebop vocabulary."""

    algorithm = "bebop"

    def __init__(self, context: GeneratorContext, options: Optional[BebopOptions] = None) -> None:
        self.ctx = context
        self.options = options or BebopOptions()
        # ``chord_tones`` already substitutes degrees 1/3/5 for scales
        # without listed chord tones.
        self.chord_tones = context.chord_tones
        self.swing = context.config.rhythm_feel == "swing"

    def generate(self) -> GeneratorResult:
        ctx = self.ctx
        total = ctx.total_beats
        targets = self.plan_targets(total)

        notes: List[Note] = []
        current_beat = 0.0

        for i, target in enumerate(targets):
            next_target = targets[i + 1] if i + 1 < len(targets) else None
            until_target = target.beat - current_beat
            after_target = (next_target.beat if next_target else total) - target.beat

            if i > 0 and until_target > 0:
                notes.extend(self.approach(target.pitch, current_beat, until_target))

            target_beats = min(1.0 if after_target > 1 else after_target * 0.8, EIGHTH)
            note = ctx.create_note(target.pitch, target.beat, target_beats, self.options.target_velocity)
            notes.append(ctx.apply_velocity(note, target.beat))
            current_beat = target.beat + target_beats

            if next_target is not None:
                # Leave an eighth free for the next approach.
                fill_beats = next_target.beat - current_beat - EIGHTH
            else:
                fill_beats = total - current_beat
            if fill_beats > 0.25:
                fill = self.line(
                    target.pitch,
                    current_beat,
                    fill_beats,
                    next_target.pitch if next_target else None,
                )
                notes.extend(fill)
                if fill:
                    last = fill[-1]
                    current_beat = ctx.seconds_to_beats(last.time + last.duration)

        return GeneratorResult(ctx.finalize(notes), self.algorithm)

    # -- targets ------------------------------------------------------
    def plan_targets(self, total_beats: float) -> List[_Target]:
        """Place a chord-tone target on every strong beat."""

        targets: List[_Target] = []
        beat = 0.0
        while beat < total_beats:
            if not targets:
                pitch = self.chord_tones[len(self.chord_tones) // 2]
            else:
                pitch = self.next_target(targets[-1].pitch)
            targets.append(_Target(beat, pitch))
            beat += TARGET_SPACING
        return targets

    def next_target(self, previous: str) -> str:
        """Return a chord tone within a fifth of ``previous``, preferring steps."""

        rng = self.ctx.rng
        prev_midi = note_to_midi(previous)
        candidates = [
            tone for tone in self.chord_tones
            if 1 <= abs(note_to_midi(tone) - prev_midi) <= 7
        ]
        if not candidates:
            return rng.choice(self.chord_tones)
        stepwise = [t for t in candidates if abs(note_to_midi(t) - prev_midi) <= 3]
        if stepwise and rng.random() < self.options.stepwise_preference:
            return rng.choice(stepwise)
        return rng.choice(candidates)

    # -- approaches ---------------------------------------------------
    def select_approach(self, available_beats: float) -> str:
        """Pick an approach type that fits in ``available_beats``."""

        rng, opts = self.ctx.rng, self.options
        if available_beats < 0.5:
            return "direct"
        if available_beats >= 1.5 and rng.random() < opts.enclosure_frequency:
            return "enclosure-above-first" if rng.random() < 0.5 else "enclosure-below-first"
        if available_beats >= 1 and rng.random() < opts.double_chromatic_frequency:
            return "double-chromatic"
        return "chromatic-above" if self.ctx.rng.random() < 0.5 else "chromatic-below"

    def approach_pitches(self, target_midi: int, approach_type: str) -> List[int]:
        """Return the MIDI numbers leading into ``target_midi``."""

        if approach_type == "chromatic-above":
            return [target_midi + 1]
        if approach_type == "chromatic-below":
            return [target_midi - 1]
        if approach_type == "enclosure-above-first":
            return [self.scale_tone_above(target_midi), target_midi - 1]
        if approach_type == "enclosure-below-first":
            return [self.scale_tone_below(target_midi), target_midi + 1]
        if approach_type == "double-chromatic":
            return [target_midi + 2, target_midi + 1]
        if approach_type == "scale-step":
            if self.ctx.rng.random() < 0.5:
                return [self.scale_tone_above(target_midi)]
            return [self.scale_tone_below(target_midi)]
        return []

    def approach(self, target: str, start_beat: float, available_beats: float) -> List[Note]:
        """Return approach notes ending exactly on the target's beat."""

        ctx = self.ctx
        if ctx.rng.random() > self.options.approach_frequency:
            return []
        pitches = self.approach_pitches(note_to_midi(target), self.select_approach(available_beats))
        if not pitches:
            return []

        step = min(EIGHTH, available_beats / len(pitches))
        beat = start_beat + available_beats - step * len(pitches)
        notes = []
        for i, midi in enumerate(pitches):
            duration = step
            if self.swing and i % 2 == 0 and i < len(pitches) - 1:
                duration = step * self.options.swing_long
            elif self.swing and i % 2 == 1:
                duration = step * self.options.swing_short
            note = ctx.create_midi_note(midi, beat, duration * 0.9)
            # Crescendo into the target.
            note.velocity = 0.6 + (i / len(pitches)) * 0.2
            notes.append(note)
            beat += duration
        return notes

    def scale_tone_above(self, midi: int) -> int:
        """Next scale tone strictly above ``midi`` (whole step if none)."""

        for note in self.ctx.scale_notes:
            candidate = note_to_midi(note)
            if candidate > midi:
                return candidate
        return midi + 2

    def scale_tone_below(self, midi: int) -> int:
        """Next scale tone strictly below ``midi`` (whole step if none)."""

        for note in reversed(self.ctx.scale_notes):
            candidate = note_to_midi(note)
            if candidate < midi:
                return candidate
        return midi - 2

    # -- connecting line ----------------------------------------------
    def line(
        self,
        start_pitch: str,
        start_beat: float,
        available_beats: float,
        next_target: Optional[str] = None,
    ) -> List[Note]:
        """Eighth-note line from ``start_pitch`` heading toward ``next_target``."""

        ctx, opts = self.ctx, self.options
        count = int(available_beats // EIGHTH)
        if count == 0:
            return []

        current = note_to_midi(start_pitch)
        goal = note_to_midi(next_target) if next_target else current
        if goal > current:
            direction = 1
        elif goal < current:
            direction = -1
        else:
            direction = 1 if ctx.rng.random() < 0.5 else -1

        low = note_to_midi(ctx.scale_notes[0])
        high = note_to_midi(ctx.scale_notes[-1])

        notes = []
        beat = start_beat
        for i in range(count):
            # Bounce off the edges of the range.
            if current >= high:
                direction = -1
            elif current <= low:
                direction = 1

            if ctx.rng.random() < opts.chromatic_passing_probability:
                nxt = current + direction
            elif direction > 0:
                nxt = self.scale_tone_above(current)
            else:
                nxt = self.scale_tone_below(current)

            # Turn back briefly for interest.
            if 0 < i < count - 1 and ctx.rng.random() < opts.direction_change_probability:
                turn = current - direction * (1 if ctx.rng.random() < 0.5 else 2)
                if low <= turn <= high:
                    nxt = turn

            duration = EIGHTH
            if self.swing:
                duration = EIGHTH * (opts.swing_long if i % 2 == 0 else opts.swing_short)

            note = ctx.create_midi_note(nxt, beat, duration * 0.85)
            notes.append(ctx.apply_velocity(note, beat))
            beat += duration
            current = nxt
            if beat >= start_beat + available_beats - 0.1:
                break
        return notes
