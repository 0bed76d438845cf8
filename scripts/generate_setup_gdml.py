#!/usr/bin/env python3
"""Build the detector setup and write Setup.gdml (plus its manifest)."""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gdml_builder.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
