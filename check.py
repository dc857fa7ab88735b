#!/usr/bin/env python3
"""EOLRadar check — thin shim.

Lets ``python check.py [VERSION]`` work from a checkout without
installing the package.  The real implementation lives in ``eolradar/``.
"""

from eolradar.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
