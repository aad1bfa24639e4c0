#!/usr/bin/env python3
"""Lick Generator library.

This package builds short melodic phrases ("licks") for practice and
composition. A typical workflow is to describe the phrase with a
:class:`GeneratorConfig`, call :func:`generate_lick` with one of the
algorithm tags and feed the resulting :class:`Sequence` into
:func:`lick_generator.midi_io.write_midi` to produce a MIDI file.

Underlying Algorithm
--------------------
Every algorithm shares the same pipeline::

    scale_notes = get_scale_notes(key, scale, octave_range)
    durations = generate_rhythm_durations(total_beats, pattern, variation)
    for duration in durations:
        pitch = algorithm_policy(scale_notes, previous_pitch)
        note = create_note(pitch, beat, duration)
        shape_velocity(note)
    finalize(notes)  # sort, trim to the phrase end, clamp velocities

The algorithms differ only in ``algorithm_policy``: a directional scale
walk, chord-tone arpeggios, motivic development, bebop target-note lines,
call and response phrasing, melodic sequences and blues phrasing.

Features include:
- Seven generation algorithms selectable by tag.
- Reproducible output through ``GeneratorConfig.seed``.
- Regeneration of a time window inside an existing phrase.
- MIDI export through ``mido``.
- A command line interface with persistent JSON settings.
"""

__version__ = "0.1.0"

from .assembly import generate_lick, regenerate_region  # noqa: F401
from .generators import (  # noqa: F401
    ALGORITHMS,
    GENERATORS,
    ArpeggioOptions,
    BebopOptions,
    BluesOptions,
    CallResponseOptions,
    GeneratorContext,
    LickGenerator,
    MotifOptions,
    ScaleRunOptions,
    SequenceOptions,
    create_generator,
)
from .models import GeneratorConfig, GeneratorResult, Note, Sequence  # noqa: F401
from .note_utils import midi_to_note, note_to_midi  # noqa: F401
from .rhythm_engine import RHYTHM_PATTERNS, generate_rhythm_durations  # noqa: F401
from .scales import (  # noqa: F401
    SCALE_DEFINITIONS,
    closest_scale_note,
    get_scale_degree,
    get_scale_notes,
    is_chord_tone,
)
from .settings import DEFAULT_SETTINGS_FILE, load_settings, save_settings  # noqa: F401


def main() -> None:
    """Run the command line interface."""

    from .cli import main as _cli_main

    _cli_main()
