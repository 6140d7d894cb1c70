from __future__ import annotations

import os

# Force the non-interactive backend for tests (no display needed).
os.environ.setdefault("MPLBACKEND", "Agg")
