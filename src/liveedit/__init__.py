"""liveedit: visual live editing of a running preview, written back to source."""
from __future__ import annotations

from liveedit.config import LiveEditConfig
from liveedit.errors import LiveEditError

__version__ = "0.1.0"

__all__ = [
    "LiveEditConfig",
    "LiveEditError",
    "__version__",
]
