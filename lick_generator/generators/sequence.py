"""Melodic sequence generator.

A short abstract pattern of scale-degree offsets is built once and then
restated at successive transpositions.  The transposition climbs, falls or
traces an arch that turns around at the halfway repetition.  Indices wrap
around the scale-note list instead of clamping, so a long climbing sequence
re-enters at the bottom of the range.

Example
-------
>>> from lick_generator import GeneratorConfig
>>> from lick_generator.generators import GeneratorContext, SequenceGenerator, SequenceOptions
>>> opts = SequenceOptions(pattern_shape="turn", direction="descending", interval=2)
>>> generator = SequenceGenerator(GeneratorContext(GeneratorConfig(seed=1)), opts)
>>> generator.generate().algorithm
'sequence'
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, NamedTuple, Optional

from ..dynamics import clamp_velocity
from ..models import GeneratorResult, Note
from .base import GeneratorContext

__all__ = ["SequenceOptions", "SequenceGenerator", "PATTERN_SHAPES", "SEQUENCE_DIRECTIONS"]

PATTERN_SHAPES = ("ascending", "descending", "turn", "mordent", "arch")
SEQUENCE_DIRECTIONS = ("ascending", "descending", "arch")

_PATTERN_LENGTHS = (3, 4)

_BASE_VELOCITY = 0.7

# Ornamental shapes as (three-note, four-note) degree offsets.
_SHAPE_OFFSETS = {
    "turn": ((0, 1, -1), (0, 1, -1, 0)),
    "mordent": ((0, 1, 0), (0, 1, 0, -1)),
    "arch": ((0, 1, 0), (0, 1, 2, 1)),
}


@dataclass(frozen=True)
class SequenceOptions:
    """Tunables for :class:`SequenceGenerator`.

    ``None`` leaves a choice to the generator's random source.
    """

    pattern_length: Optional[int] = None
    pattern_shape: Optional[str] = None
    direction: Optional[str] = None
    interval: Optional[int] = None
    note_beats: float = 0.5
    articulation: float = 0.85
    swing_long: float = 1.33
    swing_short: float = 0.67

    def __post_init__(self) -> None:
        if self.pattern_length is not None and self.pattern_length < 2:
            raise ValueError("pattern_length must be at least 2")
        if self.pattern_shape is not None and self.pattern_shape not in PATTERN_SHAPES:
            raise ValueError(f"pattern_shape must be one of {', '.join(PATTERN_SHAPES)}")
        if self.direction is not None and self.direction not in SEQUENCE_DIRECTIONS:
            raise ValueError(f"direction must be one of {', '.join(SEQUENCE_DIRECTIONS)}")
        if self.interval is not None and not 1 <= self.interval <= 3:
            raise ValueError("interval must be between 1 and 3 scale degrees")
        if self.note_beats <= 0:
            raise ValueError("note_beats must be positive")


class _Step(NamedTuple):
    """One pattern element: degree offset, length in beats, accent."""

    offset: int
    beats: float
    velocity: float


def build_pattern(shape: str, length: int, note_beats: float = 0.5) -> List[_Step]:
    """Return the abstract pattern for ``shape``.

    Offsets are relative scale degrees and the pattern always has
    ``length`` steps.  Ornamental shapes use their three-note form when
    ``length`` is 3 and their four-note form otherwise; longer patterns hold
    the starting degree.  The first step is accented, except in an arch,
    where the peak is.  A mordent lingers on its first note and hurries the
    softer neighbours.
    """

    if shape == "ascending":
        offsets = list(range(length))
    elif shape == "descending":
        offsets = [-i for i in range(length)]
    else:
        short, full = _SHAPE_OFFSETS[shape]
        table = short if length == 3 else full
        offsets = list(table[:length]) + [0] * max(0, length - len(table))

    peak = max(offsets)
    steps = []
    for i, offset in enumerate(offsets):
        beats = note_beats
        if shape == "arch":
            accent = 0.1 if offset == peak else 0.0
        elif shape == "mordent":
            accent = 0.1 if i == 0 else -0.1
            beats = note_beats * (1.5 if i == 0 else 0.75)
        else:
            accent = 0.1 if i == 0 else 0.0
        steps.append(_Step(offset, beats, _BASE_VELOCITY + accent))
    return steps


class SequenceGenerator:
    """Restates one pattern at a series of transpositions."""

    algorithm = "sequence"

    def __init__(self, context: GeneratorContext, options: Optional[SequenceOptions] = None) -> None:
        self.ctx = context
        opts = options or SequenceOptions()
        rng = context.rng
        self.pattern_length = opts.pattern_length or rng.choice(_PATTERN_LENGTHS)
        self.pattern_shape = opts.pattern_shape or rng.choice(PATTERN_SHAPES)
        self.direction = opts.direction or rng.choice(SEQUENCE_DIRECTIONS)
        self.interval = opts.interval or rng.randint(1, 3)
        self.options = opts
        self.swing = context.config.rhythm_feel == "swing"

    def generate(self) -> GeneratorResult:
        ctx, opts = self.ctx, self.options
        total = ctx.total_beats
        pattern = build_pattern(self.pattern_shape, self.pattern_length, opts.note_beats)
        pattern_beats = sum(step.beats for step in pattern)
        repetitions = max(1, int(total // pattern_beats))

        notes: List[Note] = []
        current_beat = 0.0
        start_index = ctx.scale_length // 3

        for rep in range(repetitions):
            if current_beat >= total:
                break
            base = start_index + self.transposition(rep, repetitions)
            for i, step in enumerate(pattern):
                if current_beat >= total:
                    break
                # Wrap rather than clamp so the shape survives at the edges.
                pitch = ctx.scale_notes[(base + step.offset) % ctx.scale_length]

                beats = step.beats
                if self.swing:
                    beats *= opts.swing_long if i % 2 == 0 else opts.swing_short

                note = ctx.create_note(pitch, current_beat, beats * opts.articulation)
                ctx.apply_velocity(note, current_beat)
                note.velocity = clamp_velocity(note.velocity + step.velocity - _BASE_VELOCITY)
                notes.append(note)
                current_beat += beats

        return GeneratorResult(ctx.finalize(notes), self.algorithm)

    def transposition(self, repetition: int, repetitions: int) -> int:
        """Scale-index offset of the ``repetition``-th restatement."""

        if self.direction == "ascending":
            return repetition * self.interval
        if self.direction == "descending":
            return -repetition * self.interval
        peak = repetitions // 2
        if repetition <= peak:
            return repetition * self.interval
        return (2 * peak - repetition) * self.interval
