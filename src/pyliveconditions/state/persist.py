"""Persisted client snapshot (map view and signed-in profile).

Only non-secret state is written: bearer tokens never reach disk. Loading
is forgiving: a missing, unreadable or outdated file yields ``None`` and a
log line, never an exception, so a corrupt snapshot cannot stop the client
from starting.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pyliveconditions._constants import SNAPSHOT_VERSION
from pyliveconditions.exceptions import LiveSnapshotError
from pyliveconditions.models.map import MapView
from pyliveconditions.models.user import UserProfile

_logger = logging.getLogger(__name__)


class PersistedSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    version: int = SNAPSHOT_VERSION
    map_view: MapView | None = Field(default=None, alias="map")
    user: UserProfile | None = None


def dump_snapshot(snapshot: PersistedSnapshot) -> str:
    return snapshot.model_dump_json(by_alias=True, indent=2)


def save_snapshot(path: str | os.PathLike[str], snapshot: PersistedSnapshot) -> None:
    """Write *snapshot* to *path* atomically.

    The JSON goes to a temporary file in the same directory which then
    replaces *path*, so readers see either the old or the new file.
    Raises :class:`LiveSnapshotError` if the file cannot be written.
    """
    target = Path(path)
    payload = dump_snapshot(snapshot)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise LiveSnapshotError(f"Could not write snapshot to {target}: {exc}") from exc
    _logger.debug("Saved snapshot to %s", target)


def load_snapshot(path: str | os.PathLike[str]) -> PersistedSnapshot | None:
    """Read a snapshot written by :func:`save_snapshot`, or ``None``."""
    target = Path(path)
    try:
        text = target.read_text(encoding="utf-8")
    except FileNotFoundError:
        _logger.debug("No snapshot at %s", target)
        return None
    except OSError as exc:
        _logger.warning("Could not read snapshot %s: %s", target, exc)
        return None

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        _logger.warning("Ignoring snapshot %s: invalid JSON (%s)", target, exc)
        return None
    if not isinstance(raw, dict):
        _logger.warning("Ignoring snapshot %s: not a JSON object", target)
        return None

    version = raw.get("version")
    if version != SNAPSHOT_VERSION:
        _logger.warning("Ignoring snapshot %s: version %r, expected %d", target, version, SNAPSHOT_VERSION)
        return None

    try:
        return PersistedSnapshot.model_validate(raw)
    except ValidationError as exc:
        _logger.warning("Ignoring snapshot %s: %d validation error(s)", target, exc.error_count())
        return None
