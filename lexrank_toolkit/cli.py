"""Console-script entrypoints.

The CLI module remains runnable as `python -m lexrank_toolkit.tools.lexrank_cli`; the package also
exposes an installable `lexrank` console script that calls the same `main()`.
"""

from __future__ import annotations

import sys


def lexrank() -> None:
    from lexrank_toolkit.tools.lexrank_cli import main

    sys.exit(main())
