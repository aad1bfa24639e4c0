"""Command line interface for the lick generator.

Generates one lick and prints it, writes it to a MIDI file, or both. Values
not given on the command line come from the settings file (see
:mod:`lick_generator.settings`) and then from the built-in defaults.

Usage Example
-------------
Generate a swung bebop line in F and save it as MIDI::

    lick-generator --algorithm bebop --key F --scale mixolydian \\
        --feel swing --bars 2 --seed 7 --output bebop.mid

Print the notes of a blues lick as JSON::

    python -m lick_generator --algorithm blues --key A --json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .assembly import generate_lick
from .generators import ALGORITHMS, DEFAULT_ALGORITHM
from .models import GeneratorConfig, Sequence
from .rhythm_engine import FEELS
from .scales import MAX_OCTAVE, MIN_OCTAVE, SCALE_DEFINITIONS
from .settings import (
    DEFAULT_SETTINGS_FILE,
    config_from_settings,
    load_settings,
    save_settings,
    settings_from_config,
)

__all__ = ["build_parser", "run_cli", "main", "format_sequence"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lick-generator",
        description="Generate a short melodic lick and print it or save it as a MIDI file.",
    )
    parser.add_argument("--list-scales", action="store_true", help="List all supported scales and exit")
    parser.add_argument("--list-algorithms", action="store_true", help="List all algorithms and exit")
    parser.add_argument(
        "--algorithm",
        choices=ALGORITHMS,
        help=f"Generation algorithm (default: {DEFAULT_ALGORITHM}).",
    )
    parser.add_argument("--key", type=str, help="Root note of the lick (e.g. C, F#, Bb).")
    parser.add_argument("--scale", type=str, help="Scale id (see --list-scales).")
    parser.add_argument("--tempo", type=float, help="Tempo in beats per minute.")
    parser.add_argument("--bars", type=float, help="Length in 4/4 bars; fractions such as 0.5 are allowed.")
    parser.add_argument(
        "--octave-min",
        type=int,
        help=f"Lowest octave of the range ({MIN_OCTAVE}-{MAX_OCTAVE}).",
    )
    parser.add_argument(
        "--octave-max",
        type=int,
        help=f"Highest octave of the range ({MIN_OCTAVE}-{MAX_OCTAVE}).",
    )
    parser.add_argument("--feel", choices=FEELS, help="Rhythmic feel.")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible output")
    parser.add_argument("--output", type=str, help="Write the lick to this MIDI file.")
    parser.add_argument("--json", action="store_true", help="Print the lick as JSON")
    parser.add_argument("--humanize", action="store_true", help="Add slight velocity variation to the MIDI output")
    parser.add_argument(
        "--settings-file",
        type=str,
        help="Path to the JSON settings file providing defaults",
    )
    parser.add_argument(
        "--save-settings",
        action="store_true",
        help="Store the options used for this run in the settings file",
    )
    return parser


def format_sequence(sequence: Sequence) -> str:
    """Return a human readable listing of ``sequence``."""

    lines = [
        f"{sequence.key} {sequence.scale} - {sequence.algorithm} "
        f"({sequence.length_bars:g} bars @ {sequence.tempo:g} BPM, {len(sequence.notes)} notes)"
    ]
    for note in sequence.notes:
        lines.append(
            f"{note.time:7.3f}s  {note.pitch:<4} {note.duration:6.3f}s  vel {note.velocity:.2f}"
        )
    return "\n".join(lines)


def _octave_range(args: argparse.Namespace, settings: dict) -> Optional[tuple]:
    if args.octave_min is None and args.octave_max is None:
        return None
    low, high = settings.get("octave_range", GeneratorConfig().octave_range)
    if args.octave_min is not None:
        low = args.octave_min
    if args.octave_max is not None:
        high = args.octave_max
    return (low, high)


def run_cli(argv: Optional[List[str]] = None) -> None:
    """Parse ``argv`` and generate a lick.

    Invalid options are logged and terminate the process with exit status
    ``1``. When neither ``--json`` nor ``--output`` is given the notes are
    printed as a table.
    """

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_scales:
        print("\n".join(sorted(SCALE_DEFINITIONS)))
        return
    if args.list_algorithms:
        print("\n".join(ALGORITHMS))
        return

    settings_path = Path(args.settings_file).expanduser() if args.settings_file else DEFAULT_SETTINGS_FILE
    settings = load_settings(settings_path)
    algorithm = args.algorithm or settings.get("algorithm") or DEFAULT_ALGORITHM

    try:
        config = config_from_settings(
            settings,
            key=args.key,
            scale=args.scale,
            tempo=args.tempo,
            length_bars=args.bars,
            octave_range=_octave_range(args, settings),
            rhythm_feel=args.feel,
            seed=args.seed,
        )
    except (TypeError, ValueError) as exc:
        logging.error(str(exc))
        sys.exit(1)

    sequence = generate_lick(algorithm, config)

    if args.json:
        print(json.dumps(sequence.to_dict(), indent=2))
    elif not args.output:
        print(format_sequence(sequence))

    if args.output:
        from .midi_io import write_midi

        try:
            write_midi(sequence, args.output, humanize=args.humanize)
        except ImportError as exc:
            logging.error(str(exc))
            sys.exit(1)
        except OSError as exc:
            logging.error("Could not write MIDI file: %s", exc)
            sys.exit(1)

    if args.save_settings:
        save_settings(settings_from_config(config, sequence.algorithm), settings_path)

    logging.info("Lick generation complete.")


def main() -> None:
    """Console entry point."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    run_cli()


if __name__ == "__main__":
    main()
