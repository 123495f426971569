# Copyright 2026 Justin Cook
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Recent-settings log: a snapshot of the résumé, the job list and the document
selection is appended after every run that produced something, so a run can
be reloaded later with --load-recent.
"""

import os
import json
import uuid
import logging
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from resume_forge.exceptions import PersistenceError
from resume_forge.models import DocumentSelection, JobTarget, ParsedResumeData

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20

STYLE_NAMES = {
    DocumentSelection.BOTH: "Resume + Cover Letter",
    DocumentSelection.RESUME: "Resume Only",
    DocumentSelection.COVER_LETTER: "Cover Letter Only",
}


def style_name_for(selection: Union[DocumentSelection, str]) -> str:
    return STYLE_NAMES[DocumentSelection(selection)]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class SettingsRecord:
    name: str
    resume_data: Optional[Dict[str, Any]]
    jobs_data: List[Dict[str, Any]]
    document_type: str
    style_name: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=_now_iso)

    @classmethod
    def from_run(cls, name: str, resume: ParsedResumeData, jobs: List[JobTarget],
                 selection: Union[DocumentSelection, str]) -> "SettingsRecord":
        selection = DocumentSelection(selection)
        return cls(
            name=name,
            resume_data=resume.to_dict(),
            jobs_data=[job.to_dict() for job in jobs],
            document_type=selection.value,
            style_name=style_name_for(selection),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SettingsRecord":
        return cls(
            name=data.get("name", ""),
            resume_data=data.get("resume_data"),
            jobs_data=data.get("jobs_data") or [],
            document_type=data.get("document_type") or DocumentSelection.BOTH.value,
            style_name=data.get("style_name") or "",
            id=data.get("id") or str(uuid.uuid4()),
            created_at=data.get("created_at") or _now_iso(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "style_name": self.style_name,
            "resume_data": self.resume_data,
            "jobs_data": self.jobs_data,
            "document_type": self.document_type,
            "created_at": self.created_at,
        }

    # Rehydrated views used by --load-recent
    def resume(self) -> Optional[ParsedResumeData]:
        if not self.resume_data:
            return None
        return ParsedResumeData.from_dict(self.resume_data)

    def jobs(self) -> List[JobTarget]:
        return [JobTarget.from_dict(j) for j in self.jobs_data if isinstance(j, dict)]

    def selection(self) -> DocumentSelection:
        try:
            return DocumentSelection(self.document_type)
        except ValueError:
            return DocumentSelection.BOTH


class SettingsStore:
    """JSON array on disk, oldest first. Every I/O failure is a PersistenceError."""
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Could not read settings from {self.path}: {e}") from e
        if not isinstance(data, list):
            raise PersistenceError(f"Settings file {self.path} does not hold a list")
        return [item for item in data if isinstance(item, dict)]

    def _write(self, records: List[Dict[str, Any]]):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".settings-", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceError(f"Could not write settings to {self.path}: {e}") from e

    def save(self, record: SettingsRecord) -> SettingsRecord:
        records = self._read()
        records.append(record.to_dict())
        self._write(records)
        logger.info(f"Saved settings '{record.name}' ({record.id[:8]})")
        return record

    def recent(self, limit: int = DEFAULT_LIMIT) -> List[SettingsRecord]:
        # Reversed first so records saved within the same timestamp keep newest-first.
        records = [SettingsRecord.from_dict(r) for r in reversed(self._read())]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records[:limit]

    def get(self, record_id: str) -> Optional[SettingsRecord]:
        """Exact id, or a unique id prefix as printed by --list-recent."""
        records = [SettingsRecord.from_dict(r) for r in self._read()]
        for record in records:
            if record.id == record_id:
                return record
        matches = [r for r in records if record_id and r.id.startswith(record_id)]
        return matches[0] if len(matches) == 1 else None

    def clear(self):
        self._write([])
        logger.info("Cleared recent settings")
