"""Motif development generator.

A short seed motif is composed first, starting in the middle of the range
and moving mostly by step. The rest of the phrase is built by repeatedly
developing the seed with classic techniques, cycling through transposition,
melodic inversion, retrograde, augmentation and diminution until no further
full statement fits.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Tuple

from ..models import GeneratorResult, Note
from ..note_utils import note_to_midi
from ..rhythm_engine import generate_rhythm_durations, pattern_for_feel
from .base import GeneratorContext

__all__ = ["MotifOptions", "MotifGenerator", "TECHNIQUES"]

TECHNIQUES = (
    "transpose-up",
    "transpose-down",
    "invert",
    "retrograde",
    "augment",
    "diminish",
)

# Scale-index steps for the seed motif; stepwise motion dominates.
_MOVEMENTS = (-2, -1, -1, 0, 1, 1, 2, 3)

_FEEL_CHOICES = {
    "straight": (("mixed-1", 1.0),),
    "syncopated": (("syncopated-2", 1.0),),
}

_EPSILON = 1e-9


@dataclass(frozen=True)
class MotifOptions:
    """Tunables for :class:`MotifGenerator`."""

    motif_length: int = 4
    techniques: Tuple[str, ...] = TECHNIQUES
    transpose_steps: int = 1
    augmentation: float = 1.5
    diminution: float = 0.75
    rhythm_variation: float = 0.1
    articulation: float = 0.85

    def __post_init__(self) -> None:
        if self.motif_length <= 0:
            raise ValueError("motif_length must be positive")
        if not self.techniques:
            raise ValueError("techniques must not be empty")
        unknown = set(self.techniques) - set(TECHNIQUES)
        if unknown:
            raise ValueError(f"Unknown development techniques: {', '.join(sorted(unknown))}")


class _Cell(NamedTuple):
    """One motif note: pitch, rhythmic slot in beats and velocity."""

    pitch: str
    beats: float
    velocity: float


class MotifGenerator:
    """Seed-and-develop motivic writing."""

    algorithm = "motif"

    def __init__(self, context: GeneratorContext, options: Optional[MotifOptions] = None) -> None:
        self.ctx = context
        self.options = options or MotifOptions()

    def generate(self) -> GeneratorResult:
        ctx, opts = self.ctx, self.options
        total = ctx.total_beats

        motif = self._seed_motif()
        motif_beats = sum(cell.beats for cell in motif)

        notes: List[Note] = self._render(motif, 0.0)
        current_beat = motif_beats
        technique_index = 0

        while motif_beats > 0 and total - current_beat >= motif_beats - _EPSILON:
            technique = opts.techniques[technique_index % len(opts.techniques)]
            technique_index += 1
            variation = self.develop(motif, technique)
            span = sum(cell.beats for cell in variation)
            if current_beat + span > total + _EPSILON:
                # Augmentation can outgrow the remaining space; restate the
                # motif a step higher instead.
                variation = self.develop(motif, "transpose-up")
                span = motif_beats
            notes.extend(self._render(variation, current_beat))
            current_beat += span

        return GeneratorResult(ctx.finalize(notes), self.algorithm)

    # -- seed ---------------------------------------------------------
    def _seed_motif(self) -> List[_Cell]:
        ctx, opts = self.ctx, self.options
        pattern = pattern_for_feel(ctx.config.rhythm_feel, ctx.rng, _FEEL_CHOICES)
        seed_beats = min(float(opts.motif_length), ctx.total_beats)
        durations = generate_rhythm_durations(
            seed_beats, pattern, opts.rhythm_variation, ctx.rng
        )[: opts.motif_length]

        cells = []
        index = ctx.scale_length // 2
        beat = 0.0
        for duration in durations:
            pitch = ctx.note_at(index)
            velocity = ctx.apply_velocity(ctx.create_note(pitch, beat, duration), beat).velocity
            cells.append(_Cell(pitch, duration, velocity))
            index = ctx.clamp_index(index + ctx.rng.choice(_MOVEMENTS))
            beat += duration
        return cells

    # -- development --------------------------------------------------
    def develop(self, motif: List[_Cell], technique: str) -> List[_Cell]:
        """Return ``motif`` transformed by ``technique``."""

        opts = self.options
        if technique == "transpose-up":
            return self._transpose(motif, opts.transpose_steps)
        if technique == "transpose-down":
            return self._transpose(motif, -opts.transpose_steps)
        if technique == "invert":
            return self._invert(motif)
        if technique == "retrograde":
            return list(reversed(motif))
        if technique == "augment":
            return [cell._replace(beats=cell.beats * opts.augmentation) for cell in motif]
        if technique == "diminish":
            return [cell._replace(beats=cell.beats * opts.diminution) for cell in motif]
        return list(motif)

    def _transpose(self, motif: List[_Cell], steps: int) -> List[_Cell]:
        cells = []
        for cell in motif:
            index = self.ctx.index_of(cell.pitch)
            cells.append(cell._replace(pitch=self.ctx.note_at(index + steps)))
        return cells

    def _invert(self, motif: List[_Cell]) -> List[_Cell]:
        if not motif:
            return []
        pivot = note_to_midi(motif[0].pitch)
        return [
            cell._replace(pitch=self.ctx.closest_scale_note(2 * pivot - note_to_midi(cell.pitch)))
            for cell in motif
        ]

    def _render(self, cells: List[_Cell], start_beat: float) -> List[Note]:
        notes = []
        beat = start_beat
        for cell in cells:
            notes.append(
                self.ctx.create_note(
                    cell.pitch, beat, cell.beats * self.options.articulation, cell.velocity
                )
            )
            beat += cell.beats
        return notes
