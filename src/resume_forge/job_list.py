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
Job list import and selection.

CSV exports from job boards (LinkedIn scrapers, Apify actors, spreadsheets)
disagree on column names, so the header is matched against a synonym table.
"""

import csv
import io
import time
import logging
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from resume_forge.exceptions import InputError
from resume_forge.ingest import extract_text_from_html
from resume_forge.models import JobTarget

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_LENGTH = 2000
# Scraped HTML descriptions can exceed the csv module default of 128 KiB.
MAX_CSV_FIELD_CHARS = 16 * 1024 * 1024

# Field -> accepted header names, first match wins.
COLUMN_SYNONYMS: Dict[str, List[str]] = {
    "company_name": ["company", "companyname", "company_name", "employer"],
    "position": ["title", "position", "job_title", "jobtitle", "role"],
    "job_description": ["descriptiontext", "description", "job_description", "jobdescription", "descriptionhtml"],
    "location": ["location", "city", "place"],
    "company_url": ["companyurl", "company_url", "url", "link"],
    "work_type": ["worktype", "work_type", "type", "employment_type"],
    "seniority": ["seniority", "level", "experience_level"],
    "posted_at": ["postedat", "posted_at", "date", "posted_date"],
}

OPTIONAL_FIELDS = ("location", "company_url", "work_type", "seniority", "posted_at")


def _column_indexes(header: List[str]) -> Dict[str, int]:
    normalized = [h.strip().lower() for h in header]
    indexes = {}
    for field_name, names in COLUMN_SYNONYMS.items():
        indexes[field_name] = -1
        for name in names:
            if name in normalized:
                indexes[field_name] = normalized.index(name)
                break
    return indexes


def _cell(row: List[str], index: int) -> Optional[str]:
    if index < 0 or index >= len(row):
        return None
    return row[index].strip()


def clean_description(description: Optional[str]) -> str:
    """Trim and cap. HTML is kept; prompts use the original markup."""
    if not description:
        return ""
    return description.strip()[:MAX_DESCRIPTION_LENGTH]


def description_plain_text(job: JobTarget) -> str:
    """Description with HTML removed, for terminal display."""
    if not job.job_description:
        return ""
    if "<" not in job.job_description:
        return job.job_description
    return extract_text_from_html(job.job_description)


def _new_id(row_number: int) -> str:
    return f"job-{int(time.time() * 1000)}-{row_number}"


def parse_jobs_csv(csv_text: str) -> List[JobTarget]:
    """
    Parses CSV text into unselected JobTarget records.

    Rows without both a company and a position are skipped. A file with a
    header but no data rows returns an empty list rather than raising.
    """
    if not csv_text:
        return []
    text = csv_text.lstrip("\ufeff")

    csv.field_size_limit(max(csv.field_size_limit(), MAX_CSV_FIELD_CHARS))
    try:
        rows = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    except csv.Error as e:
        raise InputError(f"Malformed job list CSV: {e}") from e
    if len(rows) < 2:
        return []

    indexes = _column_indexes(rows[0])
    logger.debug(f"CSV column mapping: {indexes}")

    jobs = []
    for row_number, row in enumerate(rows[1:], start=1):
        company = _cell(row, indexes["company_name"]) or ""
        position = _cell(row, indexes["position"]) or ""
        if not company and not position:
            logger.debug(f"Skipping CSV row {row_number}: no company or position")
            continue

        optional = {name: _cell(row, indexes[name]) for name in OPTIONAL_FIELDS}
        jobs.append(JobTarget(
            id=_new_id(row_number),
            company_name=company or "Unknown Company",
            position=position or "Unknown Position",
            job_description=clean_description(_cell(row, indexes["job_description"])),
            selected=False,
            **optional,
        ))

    return jobs


def load_jobs_csv(path: Union[str, Path]) -> List[JobTarget]:
    """Reads a .csv file from disk. Other extensions are rejected."""
    path = Path(path)
    if path.suffix.lower() != ".csv":
        raise InputError(f"Job list must be a .csv file, got '{path.name}'")
    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise InputError(f"Could not read job list {path}: {e}") from e

    jobs = parse_jobs_csv(text)
    if not jobs and text.strip():
        logger.warning(f"No jobs imported from {path.name}. Check the header row and column names.")
    else:
        logger.info(f"Imported {len(jobs)} job(s) from {path.name}")
    return jobs


def create_manual_job(company_name: str, position: str, job_description: str = "",
                      location: Optional[str] = None) -> JobTarget:
    """A job typed in by hand. Needs at least a company or a position."""
    company_name = (company_name or "").strip()
    position = (position or "").strip()
    if not company_name and not position:
        raise InputError("A job needs a company name or a position")
    return JobTarget(
        id=f"job-{int(time.time() * 1000)}-manual",
        company_name=company_name or "Unknown Company",
        position=position or "Unknown Position",
        job_description=clean_description(job_description),
        location=(location or "").strip() or None,
    )


def toggle_selection(jobs: List[JobTarget], job_id: str) -> List[JobTarget]:
    return [replace(job, selected=not job.selected) if job.id == job_id else job for job in jobs]


def select_jobs(jobs: List[JobTarget], which: Union[str, Iterable[int]]) -> List[JobTarget]:
    """
    Marks jobs selected by 1-based position, or all of them with "all".
    Jobs not named are deselected.
    """
    if isinstance(which, str):
        if which.strip().lower() != "all":
            raise InputError(f"Unknown selection '{which}'. Use 'all' or job numbers.")
        return [replace(job, selected=True) for job in jobs]

    wanted = set(which)
    for number in wanted:
        if number < 1 or number > len(jobs):
            raise InputError(f"Job number {number} is out of range (1-{len(jobs)})")
    return [replace(job, selected=(i + 1) in wanted) for i, job in enumerate(jobs)]


def remove_job(jobs: List[JobTarget], job_id: str) -> List[JobTarget]:
    return [job for job in jobs if job.id != job_id]


def selected_jobs(jobs: List[JobTarget]) -> List[JobTarget]:
    return [job for job in jobs if job.selected]
