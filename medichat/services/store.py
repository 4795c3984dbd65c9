"""
Append-only, per-user analysis record log.

Two interchangeable backends behind the RecordStore protocol:
- DatabaseRecordStore: one row per record in the "analyses" table, filtered by user_id.
- LocalRecordStore: one serialized JSON array per user key, like browser localStorage.
"""
import hashlib
import json
import logging
import os
import secrets
import string
import tempfile
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from medichat.core.config import settings
from medichat.core.errors import AnalysisValidationError, StoreError
from medichat.models import AnalysisDocument, AnalysisType
from medichat.schemas.analyze import AnalysisRecord

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits

# Per storage file; shared by every LocalRecordStore instance in the process.
_file_locks: dict[str, threading.Lock] = {}
_file_locks_guard = threading.Lock()


class RecordStore(Protocol):
    def save(self, user_id: str, analysis_type: AnalysisType | str, result: dict) -> str:
        ...

    def list(self, user_id: str) -> list[AnalysisRecord]:
        ...


def new_record_id(analysis_type: AnalysisType) -> str:
    """<analysisType>-<epoch ms>-<9 random base36 chars>; unique enough within one user's log."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{analysis_type.value}-{int(time.time() * 1000)}-{suffix}"


def _check_save_args(user_id: str | None, analysis_type: AnalysisType | str, result: dict) -> AnalysisType:
    if not user_id or not user_id.strip():
        raise AnalysisValidationError("User ID is required to save analysis.")
    try:
        kind = AnalysisType(analysis_type)
    except ValueError:
        raise AnalysisValidationError(f"Unknown analysis type: {analysis_type!r}.") from None
    if not isinstance(result, dict):
        raise AnalysisValidationError("Analysis result must be a JSON object.")
    return kind


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class DatabaseRecordStore:
    """Records as rows; save is a single INSERT so concurrent saves never overwrite each other."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def save(self, user_id: str, analysis_type: AnalysisType | str, result: dict) -> str:
        kind = _check_save_args(user_id, analysis_type, result)
        record_id = new_record_id(kind)
        doc = AnalysisDocument(
            record_id=record_id,
            user_id=user_id,
            analysis_type=kind.value,
            result=result,
        )
        try:
            with Session(self.engine) as db:
                db.add(doc)
                db.commit()
        except SQLAlchemyError as e:
            logger.exception("Error saving %s for user %s: %s", kind.value, user_id, e)
            raise StoreError(f"Failed to save analysis result: {e}") from e
        logger.info("saved %s record_id=%s user_id=%s", kind.value, record_id, user_id)
        return record_id

    def list(self, user_id: str) -> list[AnalysisRecord]:
        if not user_id or not user_id.strip():
            return []
        stmt = (
            select(AnalysisDocument)
            .where(AnalysisDocument.user_id == user_id)
            .order_by(AnalysisDocument.timestamp.desc(), AnalysisDocument.seq.desc())
        )
        try:
            with Session(self.engine) as db:
                rows = list(db.exec(stmt).all())
        except SQLAlchemyError as e:
            logger.exception("Error fetching analyses for user %s: %s", user_id, e)
            raise StoreError(f"Failed to load analysis history: {e}") from e
        return [
            AnalysisRecord(
                id=r.record_id,
                user_id=r.user_id,
                analysis_type=AnalysisType(r.analysis_type),
                timestamp=_as_utc(r.timestamp),
                result=r.result,
            )
            for r in rows
        ]


class LocalRecordStore:
    """
    One JSON array per user under the key userAnalyses_<userId>, one file per key
    (named by the key's sha256).
    save is a read-modify-write guarded by a per-key lock and finished with an atomic file replace.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    @staticmethod
    def storage_key(user_id: str) -> str:
        return f"userAnalyses_{user_id}"

    def _path(self, key: str) -> Path:
        # Hashed so any userId fits the 255-byte file name limit.
        return self.directory / (hashlib.sha256(key.encode("utf-8")).hexdigest() + ".json")

    def _lock(self, key: str) -> threading.Lock:
        path = str(self._path(key).resolve())
        with _file_locks_guard:
            if path not in _file_locks:
                _file_locks[path] = threading.Lock()
            return _file_locks[path]

    def _read(self, key: str) -> list[dict]:
        path = self._path(key)
        if not path.is_file():
            return []
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"{path.name} does not hold a JSON array")
        return data

    def _write(self, key: str, items: list[dict]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, ensure_ascii=False)
            os.replace(tmp, self._path(key))
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def save(self, user_id: str, analysis_type: AnalysisType | str, result: dict) -> str:
        kind = _check_save_args(user_id, analysis_type, result)
        key = self.storage_key(user_id)
        record = {
            "id": new_record_id(kind),
            "userId": user_id,
            "analysisType": kind.value,
            "result": result,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        try:
            with self._lock(key):
                existing = self._read(key)
                self._write(key, [record, *existing])
        except (OSError, ValueError, TypeError) as e:
            logger.exception("Error saving %s result for user %s to local storage: %s", kind.value, user_id, e)
            raise StoreError(f"Failed to save analysis result to local storage: {e}") from e
        logger.info("saved %s record_id=%s user_id=%s (local)", kind.value, record["id"], user_id)
        return record["id"]

    def list(self, user_id: str) -> list[AnalysisRecord]:
        if not user_id or not user_id.strip():
            return []
        key = self.storage_key(user_id)
        try:
            with self._lock(key):
                items = self._read(key)
            records = [AnalysisRecord.model_validate(item) for item in items]
        except (OSError, ValueError) as e:
            logger.exception("Error fetching analyses for user %s from local storage: %s", user_id, e)
            raise StoreError(f"Failed to load analysis history from local storage: {e}") from e
        # Stored newest-first; a stable sort keeps that order for equal timestamps.
        return sorted(records, key=lambda r: _as_utc(r.timestamp), reverse=True)


def get_record_store() -> RecordStore:
    """Backend chosen by RECORD_STORE (database | local)."""
    if settings.record_store == "local":
        return LocalRecordStore(settings.local_store_dir)
    from medichat.core.database import engine

    return DatabaseRecordStore(engine)
