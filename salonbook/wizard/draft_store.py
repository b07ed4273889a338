"""
Durable single-record storage for the in-progress booking draft.

The store only moves opaque text; ``encode_draft``/``decode_draft`` own the
record format so a corrupt record is detected in one place.
"""

import json
import os
import re
from pathlib import Path
from typing import Optional, Protocol

from salonbook.config import settings
from salonbook.logging_context import get_session_logger
from salonbook.schemas.draft_schema import BookingDraft, DraftRecordError

logger = get_session_logger(__name__)


class DraftStore(Protocol):
    """One record per session: get, set, clear."""

    def get(self) -> Optional[str]: ...

    def set(self, value: str) -> None: ...

    def clear(self) -> None: ...


def encode_draft(draft: BookingDraft) -> str:
    return json.dumps(draft.to_record(), ensure_ascii=False, sort_keys=True)


def decode_draft(raw: str) -> BookingDraft:
    """Parse a stored record.

    Raises:
        DraftRecordError: If the text is not valid JSON or not a valid draft.
    """
    try:
        record = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise DraftRecordError(f"Draft record is not valid JSON: {exc}") from exc
    return BookingDraft.from_record(record)


class MemoryDraftStore:
    """In-process store, used by tests and embedded callers."""

    def __init__(self, initial: Optional[str] = None) -> None:
        self._value = initial
        self.writes = 0

    def get(self) -> Optional[str]:
        return self._value

    def set(self, value: str) -> None:
        self._value = value
        self.writes += 1

    def clear(self) -> None:
        self._value = None


def _safe_key(session_id: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]", "_", session_id)


class JsonFileDraftStore:
    """
    One JSON file per session under a configured directory.

    Writes go to a temporary file first and are then renamed into place,
    so a crash mid-write leaves either the old record or the new one.
    I/O errors are logged and treated as "no draft"; losing a draft
    must never break the booking itself.
    """

    def __init__(
        self,
        session_id: str,
        directory: Optional[str] = None,
        key_prefix: Optional[str] = None,
    ) -> None:
        prefix = key_prefix or settings.wizard.draft_key_prefix
        self._dir = Path(directory or settings.wizard.draft_store_dir)
        self._path = self._dir / f"{prefix}-{_safe_key(session_id)}.json"

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> Optional[str]:
        try:
            return self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read draft %s: %s", self._path, exc)
            return None

    def set(self, value: str) -> None:
        tmp = self._path.with_suffix(".tmp")
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, self._path)
        except OSError as exc:
            logger.warning("Could not save draft %s: %s", self._path, exc)

    def clear(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove draft %s: %s", self._path, exc)
