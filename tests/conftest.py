from __future__ import annotations

import sys
from pathlib import Path


# Run the tests against the working tree's src/moment_closure without
# requiring `pip install -e .` first.
SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
