"""Tests for the scale tables and degree helpers."""

import dataclasses
import importlib
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

scales = importlib.import_module("lick_generator.scales")
note_utils = importlib.import_module("lick_generator.note_utils")


def test_c_major_single_octave():
    assert scales.get_scale_notes("C", "major", (4, 4)) == [
        "C4", "D4", "E4", "F4", "G4", "A4", "B4"
    ]


def test_c_major_three_octaves_has_21_notes():
    notes = scales.get_scale_notes("C", "major", (3, 5))
    assert len(notes) == 21
    assert notes[0] == "C3"
    assert notes[-1] == "B5"


def test_scale_notes_are_ascending_for_every_scale():
    for scale_id in scales.SCALE_DEFINITIONS:
        midis = [note_utils.note_to_midi(n) for n in scales.get_scale_notes("F#", scale_id, (2, 4))]
        assert midis == sorted(midis)
        assert len(set(midis)) == len(midis)


def test_scale_notes_are_idempotent_and_unshared():
    first = scales.get_scale_notes("D", "dorian", (3, 4))
    first.append("C9")
    second = scales.get_scale_notes("D", "dorian", (3, 4))
    assert "C9" not in second
    assert second == scales.get_scale_notes("D", "dorian", (3, 4))


def test_scale_notes_clip_to_midi_range():
    notes = scales.get_scale_notes("B", "major", (8, 8))
    assert notes == ["B8", "C#9", "D#9", "E9", "F#9"]


def test_scale_degree_lookup():
    assert scales.get_scale_degree("E4", "C", "major") == 3
    assert scales.get_scale_degree("E2", "C", "major") == 3
    assert scales.get_scale_degree("C#4", "C", "major") is None
    # The flat five is the fourth degree of the blues scale.
    assert scales.get_scale_degree("F#3", "C", "blues") == 4


def test_chord_tones():
    assert scales.is_chord_tone("G2", "C", "major")
    assert not scales.is_chord_tone("D4", "C", "major")
    assert not scales.is_chord_tone("C#4", "C", "major")


def test_closest_scale_note_prefers_first_on_ties():
    assert scales.closest_scale_note(61, ["C4", "D4"]) == "C4"
    assert scales.closest_scale_note(65, ["C4", "E4", "G4"]) == "E4"
    with pytest.raises(ValueError):
        scales.closest_scale_note(60, [])


def test_get_note_at_degree_wraps_octaves():
    assert scales.get_note_at_degree("C", "major", 1, 4) == "C4"
    assert scales.get_note_at_degree("C", "major", 8, 4) == "C5"
    assert scales.get_note_at_degree("C", "major", 0, 4) == "B3"
    assert scales.get_note_at_degree("A", "pentatonic-minor", 3, 3) == "D4"


def test_get_neighboring_notes():
    assert scales.get_neighboring_notes("E4", "C", "major", (4, 4)) == ("D4", "F4")
    assert scales.get_neighboring_notes("C4", "C", "major", (4, 4)) == (None, "D4")
    # Off-scale pitches snap to the nearest scale note first.
    assert scales.get_neighboring_notes("C#4", "C", "major", (4, 4)) == (None, "D4")


def test_canonical_names():
    assert scales.canonical_key("bb") == "Bb"
    assert scales.canonical_key(" f# ") == "F#"
    assert scales.canonical_scale("Pentatonic Minor") == "pentatonic-minor"
    assert scales.canonical_scale("PENTATONIC_MAJOR") == "pentatonic-major"
    with pytest.raises(ValueError, match="Unknown key"):
        scales.canonical_key("H")
    with pytest.raises(ValueError, match="Unknown scale"):
        scales.canonical_scale("bebop-dominant")


def test_get_root_midi():
    assert scales.get_root_midi("A", 4) == 69
    assert scales.get_root_midi("C", -1) == 0
    assert scales.get_root_midi("Cb", 4) == 59
    assert scales.get_root_midi("B#", 4) == 72


def test_cb_scale_starts_below_c():
    notes = scales.get_scale_notes("Cb", "major", (4, 4))
    assert notes[0] == "B3"
    assert [note_utils.note_to_midi(n) for n in notes] == [59, 61, 63, 64, 66, 68, 70]


def test_static_tables_are_immutable():
    definition = scales.SCALE_DEFINITIONS["major"]
    with pytest.raises(dataclasses.FrozenInstanceError):
        definition.intervals = (0,)
    assert isinstance(definition.intervals, tuple)
