from __future__ import annotations

from subtrack.domain.cue import Cue
from subtrack.domain.track import Track
from subtrack.services.history import History
from subtrack.services.session import EditorSession, EditResult

__version__ = "0.1.0"

__all__ = [
    "Cue",
    "EditResult",
    "EditorSession",
    "History",
    "Track",
    "__version__",
]
