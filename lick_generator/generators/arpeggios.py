"""Arpeggio generator.

Cycles a fixed chord-tone pattern (root, third, fifth, third by default)
through the rhythm plan. Before roughly a quarter of the chord tones a
quieter diatonic passing tone borrows part of the slot, and at the end of
each full pattern cycle the arpeggio may shift up or down one register.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..models import GeneratorResult, Note
from ..rhythm_engine import generate_rhythm_durations, pattern_for_feel
from .base import GeneratorContext

__all__ = ["ArpeggioOptions", "ArpeggioGenerator"]

_FEEL_CHOICES = {
    "straight": (("straight-eighths", 0.5), ("straight-quarters", 0.5)),
    "syncopated": (("syncopated-1", 1.0),),
}


@dataclass(frozen=True)
class ArpeggioOptions:
    """Tunables for :class:`ArpeggioGenerator`."""

    include_passing_tones: bool = True
    passing_tone_frequency: float = 0.25
    # Share of the slot taken by a passing tone.
    passing_tone_share: float = 0.4
    # Passing tones are played softer than the chord tones they lead into.
    passing_tone_velocity_scale: float = 0.7
    # Offsets into the chord-tone list: root, third, fifth, third.
    pattern: Tuple[int, ...] = (0, 1, 2, 1)
    register_shift_probability: float = 0.3
    rhythm_variation: float = 0.15
    articulation: float = 0.9

    def __post_init__(self) -> None:
        if not self.pattern:
            raise ValueError("pattern must not be empty")


class ArpeggioGenerator:
    """Chord-tone arpeggios with optional passing tones."""

    algorithm = "arpeggio"

    def __init__(self, context: GeneratorContext, options: Optional[ArpeggioOptions] = None) -> None:
        self.ctx = context
        self.options = options or ArpeggioOptions()
        self.chord_tones = context.chord_tones
        degrees = {context.degree_of(n) for n in self.chord_tones}
        self.tones_per_octave = max(1, len(degrees))
        # Begin on the root of the middle register.
        middle = len(self.chord_tones) // 2
        self.base_index = (middle // self.tones_per_octave) * self.tones_per_octave

    def generate(self) -> GeneratorResult:
        ctx, opts = self.ctx, self.options
        pattern = pattern_for_feel(ctx.config.rhythm_feel, ctx.rng, _FEEL_CHOICES)
        durations = generate_rhythm_durations(
            ctx.total_beats, pattern, opts.rhythm_variation, ctx.rng
        )

        notes: List[Note] = []
        current_beat = 0.0
        step = 0
        register = 0

        for duration in durations:
            pitch = self._chord_tone(opts.pattern[step % len(opts.pattern)], register)

            passing = None
            if (
                opts.include_passing_tones
                and duration >= 0.5
                and ctx.rng.random() < opts.passing_tone_frequency
            ):
                passing = self._passing_tone(pitch)

            if passing is not None:
                passing_beats = duration * opts.passing_tone_share
                grace = ctx.create_note(passing, current_beat, passing_beats * opts.articulation)
                ctx.apply_velocity(grace, current_beat)
                grace.velocity *= opts.passing_tone_velocity_scale
                notes.append(grace)

                main_beat = current_beat + passing_beats
                main = ctx.create_note(pitch, main_beat, (duration - passing_beats) * opts.articulation)
                notes.append(ctx.apply_velocity(main, main_beat))
            else:
                note = ctx.create_note(pitch, current_beat, duration * opts.articulation)
                notes.append(ctx.apply_velocity(note, current_beat))

            current_beat += duration
            step += 1

            if step % len(opts.pattern) == 0 and ctx.rng.random() < opts.register_shift_probability:
                shift = 1 if ctx.rng.random() < 0.5 else -1
                register = max(-1, min(1, register + shift))

        return GeneratorResult(ctx.finalize(notes), self.algorithm)

    def _chord_tone(self, offset: int, register: int) -> str:
        index = self.base_index + offset + register * self.tones_per_octave
        index = max(0, min(index, len(self.chord_tones) - 1))
        return self.chord_tones[index]

    def _passing_tone(self, target: str) -> Optional[str]:
        """Return a non-chord scale neighbour of ``target`` or ``None``."""

        index = self.ctx.index_of(target)
        if index < 0:
            return None
        neighbour = index + (1 if self.ctx.rng.random() < 0.5 else -1)
        if not 0 <= neighbour < self.ctx.scale_length:
            return None
        candidate = self.ctx.scale_notes[neighbour]
        if self.ctx.is_chord_tone(candidate):
            return None
        return candidate
