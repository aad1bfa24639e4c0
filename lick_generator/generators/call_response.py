"""Call and response generator.

Alternates one-bar *call* phrases, which end on a non-tonic "question"
note, with *responses* of a cycling type:

``echo``
    The call's pitches an octave up or down.
``answer``
    A new line in the call's rhythm that resolves to the tonic.
``mirror``
    The call's intervals inverted around its first note.
``rhythmic``
    The call's pitches redistributed over a new rhythm.

A short silence separates each call from its response.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..models import GeneratorResult, Note
from ..note_utils import note_to_midi
from ..rhythm_engine import RHYTHM_PATTERNS, generate_rhythm_durations, pattern_for_feel
from .base import GeneratorContext

__all__ = ["CallResponseOptions", "CallResponseGenerator", "RESPONSE_TYPES"]

RESPONSE_TYPES = ("echo", "answer", "mirror", "rhythmic")

# Degrees that make a convincing "question" ending.
_QUESTION_DEGREES = (2, 5, 7)

_ALTERNATE_PATTERNS = ("straight-quarters", "syncopated-1", "mixed-1")

_FEEL_CHOICES = {
    "straight": (("straight-eighths", 0.5), ("mixed-1", 0.5)),
}

# Echoes stay within this register.
_ECHO_LOW = 36
_ECHO_HIGH = 96

_EPSILON = 1e-9


@dataclass(frozen=True)
class CallResponseOptions:
    """Tunables for :class:`CallResponseGenerator`."""

    call_length_bars: float = 1
    silence_beats: float = 0.5
    response_types: Tuple[str, ...] = RESPONSE_TYPES
    stepwise_probability: float = 0.7
    call_accent: float = 1.1
    echo_softening: float = 0.9
    resolution_accent: float = 1.2
    articulation: float = 0.9

    def __post_init__(self) -> None:
        if self.call_length_bars <= 0:
            raise ValueError("call_length_bars must be positive")
        if self.silence_beats < 0:
            raise ValueError("silence_beats must be non-negative")
        if not self.response_types:
            raise ValueError("response_types must not be empty")
        unknown = set(self.response_types) - set(RESPONSE_TYPES)
        if unknown:
            raise ValueError(f"Unknown response types: {', '.join(sorted(unknown))}")


def _fit(durations: List[float], length: float) -> List[float]:
    """Truncate ``durations`` so they fit into ``length`` beats."""

    fitted = []
    used = 0.0
    for duration in durations:
        if length - used <= _EPSILON:
            break
        duration = min(duration, length - used)
        fitted.append(duration)
        used += duration
    return fitted


class CallResponseGenerator:
    """Question and answer phrasing."""

    algorithm = "call-response"

    def __init__(
        self, context: GeneratorContext, options: Optional[CallResponseOptions] = None
    ) -> None:
        self.ctx = context
        self.options = options or CallResponseOptions()
        self.root = context.root_note()

    def generate(self) -> GeneratorResult:
        ctx, opts = self.ctx, self.options
        total = ctx.total_beats
        call_beats = min(opts.call_length_bars * 4, total)

        notes: List[Note] = []
        current_beat = 0.0
        response_index = 0

        while current_beat + call_beats <= total + _EPSILON:
            call = self.call(current_beat, call_beats)
            notes.extend(call)
            current_beat += call_beats + opts.silence_beats

            # A response needs at least a beat to say anything.
            if current_beat >= total - 1 or not call:
                break

            response_type = opts.response_types[response_index % len(opts.response_types)]
            response_index += 1
            length = min(call_beats, total - current_beat)
            notes.extend(self.response(call, response_type, current_beat, length))
            current_beat += length + opts.silence_beats

        return GeneratorResult(ctx.finalize(notes), self.algorithm)

    # -- call ---------------------------------------------------------
    def call(self, start_beat: float, length: float) -> List[Note]:
        """Return a call phrase ending away from the tonic."""

        ctx, opts = self.ctx, self.options
        pattern = pattern_for_feel(ctx.config.rhythm_feel, ctx.rng, _FEEL_CHOICES)
        durations = generate_rhythm_durations(length, pattern, 0.1, ctx.rng)

        notes = []
        beat = start_beat
        index = ctx.scale_length // 2
        for i, duration in enumerate(durations):
            if i == len(durations) - 1:
                pitch = self.question_note(index)
            else:
                pitch = self.next_melodic_note(index)
            found = ctx.index_of(pitch)
            if found >= 0:
                index = found

            note = ctx.create_note(pitch, beat, duration * opts.articulation)
            ctx.apply_velocity(note, beat - start_beat)
            note.velocity = min(1.0, note.velocity * opts.call_accent)
            notes.append(note)
            beat += duration
        return notes

    def question_note(self, near: int) -> str:
        """Return a non-tonic note close to index ``near``."""

        ctx = self.ctx
        nearby = [
            (i, n) for i, n in enumerate(ctx.scale_notes)
            if not ctx.is_root(n) and abs(i - near) < 5
        ]
        if not nearby:
            return ctx.note_at(near - 1)
        preferred = [(i, n) for i, n in nearby if ctx.degree_of(n) in _QUESTION_DEGREES]
        if preferred:
            return min(preferred, key=lambda item: abs(item[0] - near))[1]
        return ctx.rng.choice(nearby)[1]

    # -- responses ----------------------------------------------------
    def response(
        self, call: List[Note], response_type: str, start_beat: float, length: float
    ) -> List[Note]:
        if response_type == "echo":
            return self.echo(call, start_beat, length)
        if response_type == "mirror":
            return self.mirror(call, start_beat, length)
        if response_type == "rhythmic":
            return self.rhythmic(call, start_beat, length)
        return self.answer(call, start_beat, length)

    def _call_slots(self, call: List[Note], length: float) -> List[float]:
        # Notes sound for ``articulation`` of their slot; recover the slot.
        slots = [
            self.ctx.seconds_to_beats(n.duration) / self.options.articulation for n in call
        ]
        return _fit(slots, length)

    def echo(self, call: List[Note], start_beat: float, length: float) -> List[Note]:
        ctx, opts = self.ctx, self.options
        shift = 12 if ctx.rng.random() < 0.5 else -12
        playable = {note_to_midi(n) for n in ctx.scale_notes}
        notes = []
        beat = start_beat
        for source, slot in zip(call, self._call_slots(call, length)):
            midi = source.midi
            # Octave shifts that leave the register fall back to the other
            # direction and then to unison.
            for candidate in (source.midi + shift, source.midi - shift):
                if _ECHO_LOW <= candidate <= _ECHO_HIGH and candidate in playable:
                    midi = candidate
                    break
            note = ctx.create_midi_note(midi, beat, slot * opts.articulation)
            note.velocity = source.velocity * opts.echo_softening
            notes.append(note)
            beat += slot
        return notes

    def answer(self, call: List[Note], start_beat: float, length: float) -> List[Note]:
        ctx, opts = self.ctx, self.options
        slots = self._call_slots(call, length)

        end_midi = call[-1].midi
        index = next(
            (
                i for i, n in enumerate(ctx.scale_notes)
                if 0 < abs(note_to_midi(n) - end_midi) <= 2
            ),
            ctx.scale_length // 2,
        )

        notes = []
        beat = start_beat
        for i, slot in enumerate(slots):
            last = i == len(slots) - 1
            if last:
                pitch = self.root
            else:
                pitch = self.toward_tonic(index, len(slots) - i - 1)
                found = ctx.index_of(pitch)
                if found >= 0:
                    index = found
            note = ctx.create_note(pitch, beat, slot * opts.articulation)
            ctx.apply_velocity(note, beat - start_beat)
            if last:
                note.velocity = min(1.0, note.velocity * opts.resolution_accent)
            notes.append(note)
            beat += slot
        return notes

    def mirror(self, call: List[Note], start_beat: float, length: float) -> List[Note]:
        ctx, opts = self.ctx, self.options
        pivot = call[0].midi
        notes = []
        beat = start_beat
        for source, slot in zip(call, self._call_slots(call, length)):
            pitch = ctx.closest_scale_note(2 * pivot - source.midi)
            note = ctx.create_note(pitch, beat, slot * opts.articulation, source.velocity)
            notes.append(note)
            beat += slot
        return notes

    def rhythmic(self, call: List[Note], start_beat: float, length: float) -> List[Note]:
        ctx, opts = self.ctx, self.options
        span = min(sum(self._call_slots(call, length)), length)
        pattern = RHYTHM_PATTERNS[ctx.rng.choice(_ALTERNATE_PATTERNS)]
        durations = generate_rhythm_durations(span, pattern, 0.2, ctx.rng)

        notes = []
        beat = start_beat
        for i, duration in enumerate(durations):
            pitch = call[i % len(call)].pitch
            note = ctx.create_note(pitch, beat, duration * opts.articulation)
            notes.append(ctx.apply_velocity(note, beat - start_beat))
            beat += duration
        return notes

    # -- melodic helpers ----------------------------------------------
    def next_melodic_note(self, index: int) -> str:
        """Mostly stepwise motion with the occasional third or fourth."""

        rng = self.ctx.rng
        direction = 1 if rng.random() < 0.5 else -1
        if rng.random() < self.options.stepwise_probability:
            return self.ctx.note_at(index + direction)
        leap = 2 if rng.random() < 0.5 else 3
        return self.ctx.note_at(index + direction * leap)

    def toward_tonic(self, index: int, steps_remaining: int) -> str:
        root_index = self.ctx.index_of(self.root)
        if root_index < 0 or steps_remaining <= 1:
            return self.next_melodic_note(index)
        direction = 1 if root_index > index else -1
        step = 1 if self.ctx.rng.random() < 0.6 else 2
        return self.ctx.note_at(index + direction * step)
