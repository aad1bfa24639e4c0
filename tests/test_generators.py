"""Behavioural tests shared by every lick generation algorithm."""

from __future__ import annotations

import importlib
import logging
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

lick_generator = importlib.import_module("lick_generator")
generators = importlib.import_module("lick_generator.generators")
scales = importlib.import_module("lick_generator.scales")
note_utils = importlib.import_module("lick_generator.note_utils")
sequence_module = importlib.import_module("lick_generator.generators.sequence")
blues_module = importlib.import_module("lick_generator.generators.blues")

GeneratorConfig = lick_generator.GeneratorConfig
generate_lick = lick_generator.generate_lick

# Algorithms whose every pitch comes from the configured scale.
DIATONIC = ("scale-run", "arpeggio", "motif", "sequence", "call-response")

CONFIGS = [
    GeneratorConfig(key="C", scale="major", seed=1),
    GeneratorConfig(key="F#", scale="pentatonic-minor", tempo=200, length_bars=2, seed=2),
    GeneratorConfig(key="Bb", scale="mixolydian", rhythm_feel="swing", octave_range=(2, 4), seed=3),
    GeneratorConfig(key="E", scale="blues", rhythm_feel="syncopated", length_bars=8, seed=4),
    GeneratorConfig(key="A", scale="dorian", tempo=90, length_bars=0.25, seed=5),
    GeneratorConfig(key="G", scale="lydian", length_bars=1.5, octave_range=(4, 4), seed=6),
]


def _signature(sequence):
    return [(n.pitch, round(n.time, 9), round(n.duration, 9), round(n.velocity, 9)) for n in sequence.notes]


@pytest.mark.parametrize("config", CONFIGS)
@pytest.mark.parametrize("algorithm", generators.ALGORITHMS)
def test_notes_stay_inside_the_phrase(algorithm, config):
    seq = generate_lick(algorithm, config)
    end = config.total_seconds
    for note in seq.notes:
        assert note.time >= 0
        assert note.duration > 0
        assert note.time < end
        assert note.time + note.duration <= end + 1e-9
    times = [n.time for n in seq.notes]
    assert times == sorted(times)


def test_full_length_phrases_have_notes():
    for algorithm in generators.ALGORITHMS:
        assert generate_lick(algorithm, GeneratorConfig(seed=10)).notes, algorithm


@pytest.mark.parametrize("config", CONFIGS)
@pytest.mark.parametrize("algorithm", generators.ALGORITHMS)
def test_velocities_in_range(algorithm, config):
    for note in generate_lick(algorithm, config).notes:
        assert 0.3 <= note.velocity <= 1.0


@pytest.mark.parametrize("config", CONFIGS)
@pytest.mark.parametrize("algorithm", DIATONIC)
def test_diatonic_pitches_come_from_the_scale(algorithm, config):
    context = generators.GeneratorContext(config)
    allowed = {note_utils.note_to_midi(n) for n in context.scale_notes}
    for note in generate_lick(algorithm, config).notes:
        assert note.midi in allowed
        assert note_utils.note_to_midi(note.pitch) == note.midi


@pytest.mark.parametrize("algorithm", generators.ALGORITHMS)
def test_seed_reproduces_the_phrase(algorithm):
    config = GeneratorConfig(key="D", scale="minor", rhythm_feel="swing", seed=99)
    first = generate_lick(algorithm, config)
    second = generate_lick(algorithm, config)
    assert _signature(first) == _signature(second)
    # Note ids stay unique across calls.
    assert not {n.id for n in first.notes} & {n.id for n in second.notes}


def test_injected_rng_overrides_seed():
    config = GeneratorConfig(seed=1)
    a = generate_lick("motif", config, rng=random.Random(7))
    b = generate_lick("motif", GeneratorConfig(seed=2), rng=random.Random(7))
    assert _signature(a) == _signature(b)


def test_sequence_metadata():
    config = GeneratorConfig(key="Eb", scale="dorian", tempo=140, length_bars=2, seed=3)
    seq = generate_lick("bebop", config)
    assert (seq.key, seq.scale, seq.tempo, seq.length_bars, seq.algorithm) == (
        "Eb", "dorian", 140, 2, "bebop"
    )


def test_unknown_algorithm_falls_back_to_scale_run(caplog):
    with caplog.at_level(logging.WARNING):
        seq = generate_lick("twelve-tone", GeneratorConfig(seed=1))
    assert seq.algorithm == "scale-run"
    assert "twelve-tone" in caplog.text


def test_create_generator_rejects_mismatched_options():
    with pytest.raises(ValueError, match="BluesOptions"):
        generators.create_generator("blues", GeneratorConfig(), generators.MotifOptions())
    with pytest.raises(ValueError, match="Unknown algorithm"):
        generators.create_generator("nope", GeneratorConfig())


def test_generators_satisfy_protocol():
    for algorithm in generators.ALGORITHMS:
        generator = generators.create_generator(algorithm, GeneratorConfig(seed=0))
        assert generator.algorithm == algorithm
        assert generator.generate().algorithm == algorithm


# -- context ----------------------------------------------------------------


def test_small_scale_widens_octave_range(caplog):
    config = GeneratorConfig(key="B", scale="pentatonic-minor", octave_range=(8, 8))
    with caplog.at_level(logging.WARNING):
        context = generators.GeneratorContext(config)
    assert context.octave_range == (7, 8)
    assert len(set(context.scale_notes)) >= generators.MIN_SCALE_NOTES
    assert "widened" in caplog.text


def test_context_clamps_indices():
    context = generators.GeneratorContext(GeneratorConfig(key="C", scale="major", octave_range=(4, 4)))
    assert context.note_at(-3) == "C4"
    assert context.note_at(100) == "B4"
    assert context.index_of("E4") == 2
    assert context.index_of("C#4") == -1


def test_chord_tone_fallback(monkeypatch):
    definition = scales.ScaleDefinition("No Chords", (0, 2, 4, 5, 7, 9, 11), ())
    monkeypatch.setitem(scales.SCALE_DEFINITIONS, "no-chords", definition)
    config = GeneratorConfig(key="C", scale="no-chords", octave_range=(4, 4), seed=1)
    context = generators.GeneratorContext(config)
    assert context.chord_tones == ["C4", "E4", "G4"]

    seq = generate_lick("bebop", config)
    assert seq.notes
    assert generate_lick("arpeggio", config).notes


def test_random_note_prefers_chord_tones():
    config = GeneratorConfig(key="C", scale="major", seed=5)
    context = generators.GeneratorContext(config)
    picks = [context.random_note(prefer_chord_tones=True) for _ in range(500)]
    share = sum(context.is_chord_tone(p) for p in picks) / len(picks)
    # 70% bias plus the chord tones drawn from the unbiased 30%.
    assert share > 0.7


def test_finalize_trims_and_drops():
    config = GeneratorConfig(length_bars=1, tempo=60)
    context = generators.GeneratorContext(config)
    inside = context.create_note("C4", 1, 1)
    crossing = context.create_note("D#4", 3.5, 2)
    after = context.create_note("F4", 4, 1)
    result = context.finalize([crossing, after, inside])
    assert result == [inside, crossing]
    assert crossing.time + crossing.duration == pytest.approx(4.0)


# -- algorithm specific -----------------------------------------------------


def test_blues_turnaround_closes_the_phrase():
    config = GeneratorConfig(key="C", scale="blues", length_bars=4, seed=8)
    seq = generate_lick("blues", config, generators.BluesOptions(turnaround=True))
    assert [n.midi for n in seq.notes[-4:]] == [69, 68, 67, 60]


def test_blues_turnaround_in_other_keys():
    config = GeneratorConfig(key="A", scale="pentatonic-minor", length_bars=4, seed=2)
    seq = generate_lick("blues", config, generators.BluesOptions(turnaround=True, shuffle_feel=False))
    assert [n.midi for n in seq.notes[-4:]] == [78, 77, 76, 69]


def test_blues_turnaround_for_cb_sits_below_middle_c():
    config = GeneratorConfig(key="Cb", scale="blues", length_bars=4, seed=3)
    seq = generate_lick("blues", config, generators.BluesOptions(turnaround=True, shuffle_feel=False))
    assert [n.midi for n in seq.notes[-4:]] == [68, 67, 66, 59]


def test_blues_without_turnaround():
    config = GeneratorConfig(key="C", length_bars=4, seed=8)
    seq = generate_lick("blues", config, generators.BluesOptions(turnaround=False, bend_frequency=0))
    assert [n.midi for n in seq.notes[-4:]] != [69, 68, 67, 60]


def test_blues_bends_add_grace_notes():
    config = GeneratorConfig(key="C", length_bars=8, seed=4)
    context = generators.GeneratorContext(config)
    generator = generators.BluesGenerator(context, generators.BluesOptions(bend_frequency=1.0))
    grace, main = generator.bend(63, 0.0, 1.0)
    assert (grace.midi, main.midi) == (62, 63)
    assert context.seconds_to_beats(grace.duration) == pytest.approx(0.1)
    assert main.time == pytest.approx(context.beats_to_seconds(0.1))


def test_scale_run_ascending_moves_up():
    config = GeneratorConfig(key="C", scale="major", octave_range=(2, 6), length_bars=0.5, seed=1)
    options = generators.ScaleRunOptions(
        direction="ascending", rest_probability=0, run_length=100, rhythm_variation=0
    )
    seq = generate_lick("scale-run", config, options)
    midis = [n.midi for n in seq.notes]
    assert midis == sorted(midis)


def test_scale_run_options_validated():
    with pytest.raises(ValueError):
        generators.ScaleRunOptions(direction="sideways")
    with pytest.raises(ValueError):
        generators.ScaleRunOptions(run_length=0)


def test_arpeggio_without_passing_tones_uses_chord_tones_only():
    config = GeneratorConfig(key="G", scale="major", seed=4)
    options = generators.ArpeggioOptions(include_passing_tones=False)
    context = generators.GeneratorContext(config)
    for note in generate_lick("arpeggio", config, options).notes:
        assert context.is_chord_tone(note.pitch)


def test_motif_development_techniques():
    config = GeneratorConfig(key="C", scale="major", octave_range=(4, 5), seed=3)
    generator = generators.create_generator("motif", config)
    motif = generator._seed_motif()
    assert len(motif) <= generator.options.motif_length

    retro = generator.develop(motif, "retrograde")
    assert [c.pitch for c in retro] == [c.pitch for c in reversed(motif)]

    augmented = generator.develop(motif, "augment")
    assert sum(c.beats for c in augmented) == pytest.approx(1.5 * sum(c.beats for c in motif))

    inverted = generator.develop(motif, "invert")
    assert inverted[0].pitch == motif[0].pitch


def test_motif_options_validated():
    with pytest.raises(ValueError):
        generators.MotifOptions(techniques=("fragment",))


def test_bebop_targets_land_on_strong_beats():
    config = GeneratorConfig(key="F", scale="mixolydian", length_bars=2, seed=6)
    generator = generators.create_generator("bebop", config)
    targets = generator.plan_targets(config.total_beats)
    assert [t.beat for t in targets] == [0, 2, 4, 6]
    context = generator.ctx
    assert all(context.is_chord_tone(t.pitch) for t in targets)


def test_bebop_approach_patterns():
    config = GeneratorConfig(key="C", scale="major", seed=1)
    generator = generators.create_generator("bebop", config)
    assert generator.approach_pitches(64, "chromatic-above") == [65]
    assert generator.approach_pitches(64, "chromatic-below") == [63]
    assert generator.approach_pitches(64, "double-chromatic") == [66, 65]
    assert generator.approach_pitches(64, "enclosure-above-first") == [65, 63]
    assert generator.approach_pitches(64, "enclosure-below-first") == [62, 65]
    assert generator.approach_pitches(64, "direct") == []
    assert generator.select_approach(0.25) == "direct"


def test_call_response_cycles_response_types():
    config = GeneratorConfig(key="C", scale="major", length_bars=2, seed=2)
    options = generators.CallResponseOptions(response_types=("answer",))
    generator = generators.create_generator("call-response", config, options)
    call = generator.call(0.0, 4.0)
    answer = generator.answer(call, 4.5, 3.5)
    assert not generator.ctx.is_root(call[-1].pitch)
    assert generator.ctx.is_root(answer[-1].pitch)


def test_call_response_options_validated():
    with pytest.raises(ValueError):
        generators.CallResponseOptions(response_types=("shout",))
    with pytest.raises(ValueError):
        generators.CallResponseOptions(silence_beats=-1)


def test_sequence_repeats_pattern_shape():
    config = GeneratorConfig(key="C", scale="major", length_bars=1, seed=1)
    options = generators.SequenceOptions(
        pattern_length=4, pattern_shape="ascending", direction="ascending", interval=1
    )
    seq = generate_lick("sequence", config, options)
    context = generators.GeneratorContext(config)
    indices = [context.index_of(n.pitch) for n in seq.notes]
    assert indices[:4] == [7, 8, 9, 10]
    assert indices[4:8] == [8, 9, 10, 11]


def test_sequence_options_validated():
    with pytest.raises(ValueError):
        generators.SequenceOptions(interval=4)
    with pytest.raises(ValueError):
        generators.SequenceOptions(pattern_shape="zigzag")


@pytest.mark.parametrize(
    "shape, length, offsets",
    [
        ("ascending", 3, [0, 1, 2]),
        ("ascending", 4, [0, 1, 2, 3]),
        ("descending", 3, [0, -1, -2]),
        ("descending", 4, [0, -1, -2, -3]),
        ("turn", 3, [0, 1, -1]),
        ("turn", 4, [0, 1, -1, 0]),
        ("mordent", 3, [0, 1, 0]),
        ("mordent", 4, [0, 1, 0, -1]),
        ("arch", 3, [0, 1, 0]),
        ("arch", 4, [0, 1, 2, 1]),
    ],
)
def test_sequence_pattern_shapes(shape, length, offsets):
    pattern = sequence_module.build_pattern(shape, length)
    assert [step.offset for step in pattern] == offsets


def test_longer_ornamental_patterns_hold_the_start_degree():
    pattern = sequence_module.build_pattern("turn", 6)
    assert [step.offset for step in pattern] == [0, 1, -1, 0, 0, 0]


def test_mordent_lingers_on_the_first_note():
    pattern = sequence_module.build_pattern("mordent", 4, note_beats=0.5)
    assert [step.beats for step in pattern] == pytest.approx([0.75, 0.375, 0.375, 0.375])
    assert [step.velocity for step in pattern] == pytest.approx([0.8, 0.6, 0.6, 0.6])


def test_arch_pattern_accents_its_peak():
    pattern = sequence_module.build_pattern("arch", 4)
    assert [step.velocity for step in pattern] == pytest.approx([0.7, 0.7, 0.8, 0.7])
    assert all(step.beats == 0.5 for step in pattern)


def test_sequence_arch_direction_turns_at_the_middle():
    options = generators.SequenceOptions(direction="arch", interval=2)
    generator = generators.create_generator("sequence", GeneratorConfig(seed=1), options)
    assert [generator.transposition(rep, 5) for rep in range(5)] == [0, 2, 4, 2, 0]
    assert [generator.transposition(rep, 4) for rep in range(4)] == [0, 2, 4, 2]


def test_mordent_sequence_stays_inside_the_phrase():
    config = GeneratorConfig(key="D", scale="dorian", rhythm_feel="swing", length_bars=2, seed=7)
    options = generators.SequenceOptions(pattern_shape="mordent", pattern_length=4)
    seq = generate_lick("sequence", config, options)
    assert seq.notes
    for note in seq.notes:
        assert note.time + note.duration <= config.total_seconds + 1e-9


@pytest.mark.parametrize("config", CONFIGS)
def test_bebop_pitches_are_scale_tones_or_chromatic_neighbours(config):
    context = generators.GeneratorContext(config)
    scale_midis = [note_utils.note_to_midi(n) for n in context.scale_notes]
    for note in generate_lick("bebop", config).notes:
        # Approach and passing notes sit at most a whole step from a scale tone.
        assert min(abs(note.midi - m) for m in scale_midis) <= 2, note.pitch


@pytest.mark.parametrize("config", CONFIGS)
def test_blues_pitches_are_scale_tones_or_ornaments(config):
    generator = generators.create_generator("blues", config)
    blues_midis = {note_utils.note_to_midi(n) for n in generator.scale_notes}
    root = scales.get_root_midi(config.key, 4)
    turnaround = {root + i for i in blues_module.TURNAROUND_INTERVALS}
    for note in generate_lick("blues", config).notes:
        if note.midi in blues_midis or note.midi in turnaround:
            continue
        # Otherwise a bend grace note a semitone under a blue note.
        assert note.midi + 1 in blues_midis, note.pitch
        assert generator.is_blue_note(note.midi + 1), note.pitch


def test_blues_bends_every_blue_note_and_stays_classified():
    config = GeneratorConfig(key="G", scale="blues", length_bars=8, seed=12)
    options = generators.BluesOptions(bend_frequency=1.0, turnaround=True)
    generator = generators.create_generator("blues", config, options)
    blues_midis = {note_utils.note_to_midi(n) for n in generator.scale_notes}
    seq = generate_lick("blues", config, options)
    graces = [n for n in seq.notes if n.midi not in blues_midis]
    root = scales.get_root_midi("G", 4)
    for note in graces:
        assert generator.is_blue_note(note.midi + 1) or note.midi - root in blues_module.TURNAROUND_INTERVALS


def test_random_note_uses_fallback_chord_tones(monkeypatch):
    definition = scales.ScaleDefinition("No Chords", (0, 2, 4, 5, 7, 9, 11), ())
    monkeypatch.setitem(scales.SCALE_DEFINITIONS, "no-chords", definition)
    config = GeneratorConfig(key="C", scale="no-chords", octave_range=(4, 4), seed=5)
    context = generators.GeneratorContext(config)
    picks = [context.random_note(prefer_chord_tones=True) for _ in range(500)]
    share = sum(p in ("C4", "E4", "G4") for p in picks) / len(picks)
    # 70% bias plus the fallback tones drawn from the unbiased 30%.
    assert share > 0.7
