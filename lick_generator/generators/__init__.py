"""Lick generation algorithms.

Every algorithm is a small class composed with a
:class:`~lick_generator.generators.base.GeneratorContext` and exposing a
``generate()`` method. :data:`GENERATORS` maps algorithm tags to classes so
callers can dispatch without knowing the concrete types.

Usage Example
-------------
>>> from lick_generator.models import GeneratorConfig
>>> gen = create_generator("arpeggio", GeneratorConfig(key="G", scale="major", seed=2))
>>> gen.generate().algorithm
'arpeggio'
"""

from __future__ import annotations

import random
from typing import Dict, Optional, Type

from ..models import GeneratorConfig
from .arpeggios import ArpeggioGenerator, ArpeggioOptions
from .base import CHORD_TONE_BIAS, MIN_SCALE_NOTES, GeneratorContext, LickGenerator
from .bebop import BebopGenerator, BebopOptions
from .blues import BluesGenerator, BluesOptions
from .call_response import CallResponseGenerator, CallResponseOptions
from .motif import MotifGenerator, MotifOptions
from .scale_runs import ScaleRunGenerator, ScaleRunOptions
from .sequence import SequenceGenerator, SequenceOptions

__all__ = [
    "ALGORITHMS",
    "DEFAULT_ALGORITHM",
    "GENERATORS",
    "OPTIONS",
    "CHORD_TONE_BIAS",
    "MIN_SCALE_NOTES",
    "GeneratorContext",
    "LickGenerator",
    "create_generator",
    "ScaleRunGenerator",
    "ScaleRunOptions",
    "ArpeggioGenerator",
    "ArpeggioOptions",
    "MotifGenerator",
    "MotifOptions",
    "BebopGenerator",
    "BebopOptions",
    "CallResponseGenerator",
    "CallResponseOptions",
    "SequenceGenerator",
    "SequenceOptions",
    "BluesGenerator",
    "BluesOptions",
]

GENERATORS: Dict[str, Type] = {
    "scale-run": ScaleRunGenerator,
    "arpeggio": ArpeggioGenerator,
    "motif": MotifGenerator,
    "bebop": BebopGenerator,
    "call-response": CallResponseGenerator,
    "sequence": SequenceGenerator,
    "blues": BluesGenerator,
}

# Options dataclass accepted by each algorithm.
OPTIONS: Dict[str, Type] = {
    "scale-run": ScaleRunOptions,
    "arpeggio": ArpeggioOptions,
    "motif": MotifOptions,
    "bebop": BebopOptions,
    "call-response": CallResponseOptions,
    "sequence": SequenceOptions,
    "blues": BluesOptions,
}

ALGORITHMS = tuple(GENERATORS)
DEFAULT_ALGORITHM = "scale-run"


def create_generator(
    algorithm: str,
    config: GeneratorConfig,
    options: Optional[object] = None,
    rng: Optional[random.Random] = None,
) -> LickGenerator:
    """Instantiate the generator registered for ``algorithm``.

    Parameters
    ----------
    algorithm:
        One of :data:`ALGORITHMS`.
    config:
        Phrase configuration shared by all algorithms.
    options:
        Instance of the algorithm's options class or ``None`` for defaults.
    rng:
        Random source; a new ``random.Random(config.seed)`` when omitted.

    Raises
    ------
    ValueError
        If ``algorithm`` is unknown or ``options`` belongs to a different
        algorithm.
    """

    try:
        cls = GENERATORS[algorithm]
    except KeyError:
        raise ValueError(
            f"Unknown algorithm '{algorithm}'. Choose from: {', '.join(ALGORITHMS)}"
        ) from None
    expected = OPTIONS[algorithm]
    if options is not None and not isinstance(options, expected):
        raise ValueError(
            f"{algorithm} expects {expected.__name__}, got {type(options).__name__}"
        )
    return cls(GeneratorContext(config, rng), options)
