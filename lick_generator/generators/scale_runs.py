"""Scale-run generator.

Walks the scale-note list stepwise, reversing direction after a fixed run
length or whenever a range boundary is reached. Occasional rests break the
line into breaths and restart the run counter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..models import GeneratorResult, Note
from ..rhythm_engine import generate_rhythm_durations, pattern_for_feel
from .base import GeneratorContext

__all__ = ["ScaleRunOptions", "ScaleRunGenerator"]

DIRECTIONS = ("ascending", "descending", "mixed")


@dataclass(frozen=True)
class ScaleRunOptions:
    """Tunables for :class:`ScaleRunGenerator`."""

    direction: str = "mixed"
    run_length: int = 4
    rest_probability: float = 0.1
    rhythm_variation: float = 0.2
    # Fraction of each rhythmic slot that sounds.
    articulation: float = 0.9

    def __post_init__(self) -> None:
        if self.direction not in DIRECTIONS:
            raise ValueError(f"direction must be one of {', '.join(DIRECTIONS)}")
        if self.run_length <= 0:
            raise ValueError("run_length must be positive")


class ScaleRunGenerator:
    """Directional walk across the scale-note indices."""

    algorithm = "scale-run"

    def __init__(self, context: GeneratorContext, options: Optional[ScaleRunOptions] = None) -> None:
        self.ctx = context
        self.options = options or ScaleRunOptions()

    def generate(self) -> GeneratorResult:
        ctx, opts = self.ctx, self.options
        pattern = pattern_for_feel(ctx.config.rhythm_feel, ctx.rng)
        durations = generate_rhythm_durations(
            ctx.total_beats, pattern, opts.rhythm_variation, ctx.rng
        )

        notes: List[Note] = []
        current_beat = 0.0
        index = self._starting_index()
        direction = self._initial_direction()
        notes_in_run = 0

        for duration in durations:
            if ctx.rng.random() < opts.rest_probability:
                current_beat += duration
                notes_in_run = 0
                continue

            note = ctx.create_note(ctx.note_at(index), current_beat, duration * opts.articulation)
            notes.append(ctx.apply_velocity(note, current_beat))

            index += direction
            notes_in_run += 1
            if notes_in_run >= opts.run_length:
                if opts.direction == "mixed":
                    direction = -direction
                notes_in_run = 0

            # Bounce off the ends of the range.
            if index >= ctx.scale_length - 1:
                direction = -1
                index = ctx.scale_length - 1
            elif index <= 0:
                direction = 1
                index = 0

            current_beat += duration

        return GeneratorResult(ctx.finalize(notes), self.algorithm)

    def _starting_index(self) -> int:
        """Pick a start somewhere in the middle third of the range."""

        third = self.ctx.scale_length // 3
        if third == 0:
            return 0
        return third + self.ctx.rng.randrange(third)

    def _initial_direction(self) -> int:
        if self.options.direction == "ascending":
            return 1
        if self.options.direction == "descending":
            return -1
        return 1 if self.ctx.rng.random() < 0.5 else -1
