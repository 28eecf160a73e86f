"""Durable local log of the active match's points.

The whole log lives in a single JSON file that is read and rewritten in
full on every mutation. Nothing in here raises on I/O problems: a missing,
unreadable or unwritable file is logged and treated as an empty log or a
dropped write, so the scoring screen keeps working when the disk does not.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

from pydantic import ValidationError

from ..schemas import PointRecord

logger = logging.getLogger(__name__)


class LocalPointStore:
    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def append(self, record: PointRecord) -> None:
        records = self._read()
        if any(existing.id == record.id for existing in records):
            logger.debug("Point %s already stored; skipping", record.id)
            return
        records.append(record)
        self._write(records)

    def load_all(self) -> List[PointRecord]:
        return self._read()

    def delete_by_id(self, point_id: str) -> None:
        records = self._read()
        for index, existing in enumerate(records):
            if existing.id == point_id:
                del records[index]
                self._write(records)
                return

    def delete_last(self) -> Optional[PointRecord]:
        records = self._read()
        if not records:
            return None
        last = records.pop()
        self._write(records)
        return last

    def replace_all(self, records: Iterable[PointRecord]) -> None:
        self._write(list(records))

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Error clearing point history %s: %s", self.path, exc)

    def _read(self) -> List[PointRecord]:
        if not self.path.exists():
            return []

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Error loading point history %s: %s", self.path, exc)
            return []

        if not isinstance(raw, list):
            logger.warning(
                "Point history %s is not a JSON array (got %s); ignoring it",
                self.path,
                type(raw).__name__,
            )
            return []

        records: List[PointRecord] = []
        for index, item in enumerate(raw):
            try:
                records.append(PointRecord.model_validate(item))
            except ValidationError as exc:
                logger.warning(
                    "Dropping malformed point #%d in %s: %s",
                    index,
                    self.path,
                    exc.errors(include_url=False),
                )
        return records

    def _write(self, records: List[PointRecord]) -> None:
        payload = json.dumps([record.to_storage() for record in records], indent=2)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.warning("Error saving point history %s: %s", self.path, exc)
