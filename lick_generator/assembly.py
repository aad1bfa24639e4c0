"""Entry points that turn an algorithm tag and a config into a ``Sequence``.

:func:`generate_lick` is the main API. :func:`regenerate_region` supports
piano-roll style editing by replacing only the notes inside a time window
with a freshly generated short phrase.

Usage Example
-------------
>>> from lick_generator import GeneratorConfig, generate_lick, regenerate_region
>>> config = GeneratorConfig(key="A", scale="blues", seed=11)
>>> seq = generate_lick("blues", config)
>>> edited = regenerate_region(seq, 2.0, 4.0, "bebop", config)
>>> edited.algorithm
'blues'
"""

from __future__ import annotations

import dataclasses
import logging
import random
from typing import List, Optional

from .generators import DEFAULT_ALGORITHM, GENERATORS, create_generator
from .models import BEATS_PER_BAR, GeneratorConfig, Note, Sequence

__all__ = ["generate_lick", "regenerate_region", "MIN_REGION_BARS"]

logger = logging.getLogger(__name__)

# Shortest phrase the generators are asked to produce.
MIN_REGION_BARS = 0.25

_EPSILON = 1e-9


def generate_lick(
    algorithm: str,
    config: GeneratorConfig,
    options: Optional[object] = None,
    rng: Optional[random.Random] = None,
) -> Sequence:
    """Generate a lick with ``algorithm`` and wrap it in a :class:`Sequence`.

    Unknown algorithm tags fall back to ``"scale-run"``; options meant for
    another algorithm are discarded in that case.

    Parameters
    ----------
    algorithm:
        Tag from :data:`lick_generator.generators.ALGORITHMS`.
    config:
        Phrase settings.
    options:
        Optional options dataclass matching ``algorithm``.
    rng:
        Random source. Defaults to ``random.Random(config.seed)``.

    Returns
    -------
    Sequence
        The generated notes with the config's metadata and the tag of the
        algorithm that actually ran.
    """

    if algorithm not in GENERATORS:
        logger.warning(
            "Unknown algorithm '%s'; falling back to %s", algorithm, DEFAULT_ALGORITHM
        )
        algorithm = DEFAULT_ALGORITHM
        options = None

    generator = create_generator(algorithm, config, options, rng)
    result = generator.generate()
    logger.debug("%s produced %d notes", result.algorithm, len(result.notes))
    return Sequence(
        notes=result.notes,
        key=config.key,
        scale=config.scale,
        tempo=config.tempo,
        length_bars=config.length_bars,
        algorithm=result.algorithm,
    )


def regenerate_region(
    sequence: Sequence,
    start: float,
    end: float,
    algorithm: str,
    config: Optional[GeneratorConfig] = None,
    rng: Optional[random.Random] = None,
) -> Sequence:
    """Replace the notes of ``sequence`` between ``start`` and ``end``.

    A self-contained phrase covering the window (at least a quarter bar) is
    generated, shifted to ``start`` and clipped at ``end``. Notes starting
    outside the window are kept; those that ring into it are shortened so
    the new material does not overlap them.

    Parameters
    ----------
    sequence:
        Existing phrase. It is not modified.
    start, end:
        Window bounds in seconds.
    algorithm:
        Algorithm used for the replacement notes.
    config:
        Settings for the replacement. Defaults to one derived from the
        sequence's key, scale and tempo.
    rng:
        Optional random source.

    Returns
    -------
    Sequence
        New sequence with the original metadata and the spliced notes.

    Raises
    ------
    ValueError
        If the window is empty or starts before zero.
    """

    if start < 0:
        raise ValueError("start must be non-negative")
    if end <= start:
        raise ValueError("end must be greater than start")

    if config is None:
        config = GeneratorConfig(key=sequence.key, scale=sequence.scale, tempo=sequence.tempo)
    tempo = config.tempo
    beats = (end - start) * tempo / 60
    length_bars = max(MIN_REGION_BARS, beats / BEATS_PER_BAR)
    region_config = dataclasses.replace(config, length_bars=length_bars)

    fresh = generate_lick(algorithm, region_config, rng=rng)

    replacement: List[Note] = []
    for note in fresh.notes:
        note.time += start
        if note.time >= end - _EPSILON:
            continue
        if note.end > end:
            note.duration = end - note.time
        replacement.append(note)

    kept: List[Note] = []
    for note in sequence.notes:
        if start - _EPSILON <= note.time < end:
            continue
        copy = dataclasses.replace(note)
        if copy.time < start and copy.end > start:
            copy.duration = start - copy.time
        kept.append(copy)

    logger.info(
        "Regenerated %.2f-%.2fs with %s: %d notes replaced by %d",
        start,
        end,
        fresh.algorithm,
        len(sequence.notes) - len(kept),
        len(replacement),
    )
    notes = sorted(kept + replacement, key=lambda n: n.time)
    return dataclasses.replace(sequence, notes=notes)
