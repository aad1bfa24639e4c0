"""Value objects shared by the generation engine.

``GeneratorConfig`` is the single input every generator consumes and is
validated once on construction so the algorithms themselves never have to
reject a configuration. ``Note`` and ``Sequence`` are the output records
handed to playback, MIDI export and the piano-roll editor.
"""

from __future__ import annotations

import itertools
import random
from dataclasses import asdict, dataclass, field
from typing import List, Optional, Tuple

from .rhythm_engine import FEELS
from .scales import MAX_OCTAVE, MIN_OCTAVE, canonical_key, canonical_scale

__all__ = [
    "BEATS_PER_BAR",
    "Note",
    "GeneratorConfig",
    "GeneratorResult",
    "Sequence",
    "next_note_id",
]

# Generators assume 4/4 throughout.
BEATS_PER_BAR = 4

_NOTE_IDS = itertools.count()


def next_note_id() -> str:
    """Return a process-unique note identifier."""

    return f"note-{next(_NOTE_IDS)}"


@dataclass
class Note:
    """A single timed pitch. Times and durations are in seconds."""

    id: str
    pitch: str
    midi: int
    time: float
    duration: float
    velocity: float

    @property
    def end(self) -> float:
        return self.time + self.duration


@dataclass(frozen=True)
class GeneratorConfig:
    """Immutable description of the phrase to generate.

    Parameters
    ----------
    key:
        Root pitch class. Case-insensitive; sharps and flats are accepted
        and stored in canonical spelling.
    scale:
        Scale id from :data:`lick_generator.scales.SCALE_DEFINITIONS`.
    tempo:
        Beats per minute. Must be positive.
    length_bars:
        Phrase length in 4/4 bars. Fractional values (``0.25``) describe
        short regions for partial regeneration.
    octave_range:
        Inclusive ``(min_octave, max_octave)`` within ``MIN_OCTAVE`` and
        ``MAX_OCTAVE``.
    rhythm_feel:
        One of ``"straight"``, ``"swing"`` or ``"syncopated"``.
    seed:
        Optional seed. Identical seeds yield identical phrases; ``None``
        draws fresh entropy for every call.

    Raises
    ------
    ValueError
        If any field is outside its documented domain.
    """

    key: str = "C"
    scale: str = "pentatonic-minor"
    tempo: float = 120
    length_bars: float = 4
    octave_range: Tuple[int, int] = (3, 5)
    rhythm_feel: str = "straight"
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        # Frozen dataclasses require ``object.__setattr__`` to store the
        # normalised values.
        object.__setattr__(self, "key", canonical_key(self.key))
        object.__setattr__(self, "scale", canonical_scale(self.scale))

        if self.tempo <= 0:
            raise ValueError("tempo must be positive")
        if self.length_bars <= 0:
            raise ValueError("length_bars must be positive")

        if len(self.octave_range) != 2:
            raise ValueError("octave_range must contain exactly two octaves")
        low, high = (int(o) for o in self.octave_range)
        if low > high:
            raise ValueError("octave_range minimum must not exceed its maximum")
        if low < MIN_OCTAVE or high > MAX_OCTAVE:
            raise ValueError(
                f"octave_range must lie between {MIN_OCTAVE} and {MAX_OCTAVE}"
            )
        object.__setattr__(self, "octave_range", (low, high))

        if self.rhythm_feel not in FEELS:
            raise ValueError(
                f"rhythm_feel must be one of {', '.join(FEELS)}"
            )

    @property
    def total_beats(self) -> float:
        return self.length_bars * BEATS_PER_BAR

    @property
    def total_seconds(self) -> float:
        return self.total_beats * 60 / self.tempo

    def make_rng(self) -> random.Random:
        """Return a random source seeded from :attr:`seed`."""

        return random.Random(self.seed)


@dataclass
class GeneratorResult:
    """Notes produced by one generator run plus the algorithm tag."""

    notes: List[Note]
    algorithm: str


@dataclass
class Sequence:
    """A generated phrase together with the settings that produced it."""

    notes: List[Note] = field(default_factory=list)
    key: str = "C"
    scale: str = "pentatonic-minor"
    tempo: float = 120
    length_bars: float = 4
    algorithm: str = "scale-run"

    @property
    def duration(self) -> float:
        """End time in seconds of the last sounding note (``0`` if empty)."""

        return max((n.end for n in self.notes), default=0.0)

    def to_dict(self) -> dict:
        return asdict(self)
