"""`python -m cpuscale.tray` entrypoint.

For installed usage, prefer the `cpuscale-tray` console script.
"""

from __future__ import annotations

from .entrypoint import main

main()
