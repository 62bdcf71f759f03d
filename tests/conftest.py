from __future__ import annotations

import sys
from pathlib import Path

_TESTS = Path(__file__).resolve().parent
_REPO_ROOT = _TESTS.parent
for _p in (_REPO_ROOT, _TESTS):
    if str(_p) not in sys.path:
        sys.path.insert(0, str(_p))
