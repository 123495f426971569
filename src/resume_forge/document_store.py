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
Holds generated documents and writes them out as .html files that open
directly in a browser, Word or Google Docs.
"""

import re
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from resume_forge.models import GeneratedDocument, JobTarget

logger = logging.getLogger(__name__)

MAX_SLUG_LENGTH = 60


def safe_slug(text: str, fallback: str = "document") -> str:
    slug = re.sub(r'[^\w\s-]', '', text or "")
    slug = re.sub(r'[-\s]+', '_', slug).strip('-_')
    return slug[:MAX_SLUG_LENGTH] or fallback


def document_filename(document: GeneratedDocument, job: Optional[JobTarget] = None) -> str:
    if job is not None:
        stem = f"{safe_slug(job.company_name, 'Company')}_{safe_slug(job.position, 'Position')}"
    else:
        stem = safe_slug(document.job_id, "job")
    suffix = "Resume" if document.type.value == "resume" else "CoverLetter"
    return f"{stem}_{suffix}.html"


class DocumentStore:
    """Append-only; documents keep the order they were added in."""
    def __init__(self, documents: Optional[Iterable[GeneratedDocument]] = None):
        self._documents: List[GeneratedDocument] = list(documents or [])

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self):
        return iter(self._documents)

    def add(self, document: GeneratedDocument):
        self._documents.append(document)

    def extend(self, documents: Iterable[GeneratedDocument]):
        self._documents.extend(documents)

    def for_job(self, job_id: str) -> List[GeneratedDocument]:
        return [doc for doc in self._documents if doc.job_id == job_id]

    def export(self, output_dir: Union[str, Path], jobs: Iterable[JobTarget] = ()) -> List[Path]:
        """
        Writes every document to output_dir. Name clashes (two jobs with the
        same company and title) get a numeric suffix instead of overwriting.
        """
        output_dir = Path(output_dir)
        if not output_dir.exists():
            output_dir.mkdir(parents=True)
            logger.info(f"Created output directory: {output_dir}")

        jobs_by_id: Dict[str, JobTarget] = {job.id: job for job in jobs}
        written: List[Path] = []
        for document in self._documents:
            base = output_dir / document_filename(document, jobs_by_id.get(document.job_id))
            path, counter = base, 2
            while path in written:
                path = base.with_name(f"{base.stem}_{counter}{base.suffix}")
                counter += 1
            path.write_text(document.html_content, encoding="utf-8")
            logger.info(f"    > Saved {document.type.label}: {path}")
            written.append(path)
        return written
