"""Entry point wrapper for ``python -m lick_generator``.

Forwards to :func:`lick_generator.main` so ``python -m lick_generator`` and
the installed ``lick-generator`` console script behave identically.

Example
-------
::

    python -m lick_generator --algorithm arpeggio --key G --scale major \\
        --bars 2 --output arpeggio.mid
"""

from . import main

if __name__ == "__main__":
    main()
