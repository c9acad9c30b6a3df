"""
Primary Viewer Preference

Remembers which participant is looking at the ledger on this device,
so amounts and the balance line are shown from their side.

DESIGN DECISION: This is a plain key-value file read on demand.
There are no change notifications; callers read the id once and
pass it explicitly to whatever renders.
"""

import json
from pathlib import Path
from typing import Optional, Union

import structlog

from splitledger.config import get_settings
from splitledger.models.ledger import User


_KEY = "primary_user_id"

_logger = structlog.get_logger(__name__)


class PrimaryViewerStore:
    """JSON-file store for the primary viewer's user id."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self._path = Path(path) if path is not None else get_settings().app.preferences_file

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> Optional[int]:
        """Stored viewer id, or None if unset or unreadable."""
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            _logger.warning("preferences_unreadable", path=str(self._path), error=str(e))
            return None

        value = data.get(_KEY) if isinstance(data, dict) else None
        if isinstance(value, bool):
            return None
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    def set(self, user_id: int) -> None:
        """Store the viewer id, keeping any other keys in the file."""
        data = {}
        try:
            existing = json.loads(self._path.read_text(encoding="utf-8"))
            if isinstance(existing, dict):
                data = existing
        except (OSError, ValueError):
            pass
        data[_KEY] = int(user_id)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)

    def resolve(self, users: list[User]) -> Optional[int]:
        """
        Viewer id to use for this render.

        Returns the stored id. When nothing is stored and users exist,
        the first user is adopted as the viewer and stored.
        """
        stored = self.get()
        if stored is not None:
            return stored
        if not users:
            return None
        first = users[0].id
        self.set(first)
        return first
