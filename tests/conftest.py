from __future__ import annotations

import sys
from pathlib import Path


# Ensure `import sniper_bot.*` and `import tests.fakes` work without installing the package.
# The repository layout is: <root>/sniper_bot/ and <root>/tests/
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
