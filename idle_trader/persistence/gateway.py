"""Document-store gateways keyed by user id."""

from __future__ import annotations

import copy
import json
import math
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from loguru import logger

from idle_trader.errors import PersistenceError


class PersistenceGateway(Protocol):
    """Opaque key-value store of serialized game documents.

    ``load`` returns ``None`` when the user has no document yet. ``save``
    merges the patch into the stored document, last write wins per top-level
    field, creating the document when missing. Failures raise
    ``PersistenceError``.
    """

    async def load(self, user_id: str) -> dict[str, Any] | None: ...

    async def save(self, user_id: str, patch: Mapping[str, Any]) -> None: ...


class InMemoryGateway:
    """Gateway backed by a dict, used for tests and offline play."""

    def __init__(self, documents: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self.documents: dict[str, dict[str, Any]] = {
            user_id: dict(document) for user_id, document in (documents or {}).items()
        }
        self.save_calls = 0

    async def load(self, user_id: str) -> dict[str, Any] | None:
        document = self.documents.get(user_id)
        return copy.deepcopy(document) if document is not None else None

    async def save(self, user_id: str, patch: Mapping[str, Any]) -> None:
        self.save_calls += 1
        document = self.documents.setdefault(user_id, {})
        document.update(copy.deepcopy(dict(patch)))


class JsonFileGateway:
    """Gateway storing one JSON document per user under a directory."""

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    def path_for(self, user_id: str) -> Path:
        safe_id = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in user_id)
        return self._directory / f"{safe_id}.json"

    async def load(self, user_id: str) -> dict[str, Any] | None:
        path = self.path_for(user_id)
        if not path.exists():
            return None
        try:
            decoded = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceError(
                f"Failed to load game for {user_id}: {exc}", user_id=user_id
            ) from exc
        if not isinstance(decoded, dict):
            raise PersistenceError(
                f"Game document for {user_id} is not an object", user_id=user_id
            )
        return decoded

    async def save(self, user_id: str, patch: Mapping[str, Any]) -> None:
        path = self.path_for(user_id)
        try:
            document = await self.load(user_id) or {}
        except PersistenceError as exc:
            # Unreadable files are replaced; missing fields are repaired on load.
            logger.warning("Replacing unreadable game file {}: {}", path, exc)
            document = {}
        document.update(patch)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".json.tmp")
            tmp_path.write_text(
                json.dumps(_json_safe(document), indent=2),
                encoding="utf-8",
            )
            tmp_path.replace(path)
        except OSError as exc:
            raise PersistenceError(
                f"Failed to save game for {user_id}: {exc}", user_id=user_id
            ) from exc
        logger.debug("Saved {} field(s) for {} to {}", len(patch), user_id, path)


def _json_safe(value: Any) -> Any:
    """Replace non-finite floats with None so the file stays strict JSON."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_json_safe(item) for item in value]
    return value
