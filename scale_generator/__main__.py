"""Entry point wrapper for ``python -m scale_generator``.

Execution is forwarded to :func:`scale_generator.cli.main` so the behaviour is
identical to the installed ``scale-generator`` console script.

Example
-------
::

    python -m scale_generator --fundamentals 261.63 329.63 392 --partials 8
"""

from .cli import main

if __name__ == "__main__":
    main()
