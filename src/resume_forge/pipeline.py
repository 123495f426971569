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
Generation orchestrator.

Every selected job becomes one asyncio task; a semaphore decides how many
run at once (1 by default, so jobs are processed strictly one after the
other and "job N of M" progress stays meaningful). The provider SDKs are
blocking, so each call runs in a worker thread.

Failures are contained per document: a job whose content call fails simply
contributes fewer documents. Only a ConfigurationError aborts the run.
"""

import asyncio
import logging
from datetime import date
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple, Union

from resume_forge.exceptions import ConfigurationError, InputError, ResumeForgeError
from resume_forge.formatting import HtmlFormattingClient
from resume_forge.llm_client import ContentGenerationClient
from resume_forge.models import (
    DocumentSelection,
    DocumentType,
    ExampleTexts,
    GeneratedDocument,
    GenerationFailure,
    GenerationResult,
    JobTarget,
    ParsedResumeData,
    PortfolioData,
    RequestData,
)
from resume_forge.prompts import build_cover_letter_prompt, build_resume_prompt
from resume_forge.settings_store import SettingsRecord, SettingsStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, JobTarget], None]

PROMPT_BUILDERS = {
    DocumentType.RESUME: build_resume_prompt,
    DocumentType.COVER_LETTER: build_cover_letter_prompt,
}


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


def settings_record_name(jobs: Sequence[JobTarget], today: Optional[date] = None) -> str:
    """'Position @ Company' for a single job, 'N jobs - YYYY-MM-DD' otherwise."""
    if len(jobs) == 1:
        return f"{jobs[0].position} @ {jobs[0].company_name}"
    return f"{len(jobs)} jobs - {(today or date.today()).isoformat()}"


class GenerationOrchestrator:
    def __init__(self, content_client: ContentGenerationClient, formatting_client: HtmlFormattingClient,
                 settings_store: Optional[SettingsStore] = None, concurrency: int = 1,
                 parallel_document_types: bool = False):
        self.content_client = content_client
        self.formatting_client = formatting_client
        self.settings_store = settings_store
        self.concurrency = max(1, concurrency)
        self.parallel_document_types = parallel_document_types
        self.state = RunState.IDLE
        self.current_job_index: Optional[int] = None

    async def _generate_document(self, request: RequestData, document_type: DocumentType) -> GeneratedDocument:
        """Prompt -> content -> HTML for one (job, document type) pair."""
        examples = request.examples or ExampleTexts()
        resume = request.resume

        prompt = PROMPT_BUILDERS[document_type](
            resume, request.job, examples.content_example(document_type), request.portfolio
        )
        raw_content = await asyncio.to_thread(self.content_client.generate, prompt, document_type)

        references = resume.references if document_type is DocumentType.RESUME else None
        html_content = await asyncio.to_thread(
            self.formatting_client.format,
            raw_content,
            document_type,
            resume.personal_info,
            examples.styled_example(document_type),
            references,
            request.portfolio,
        )
        return GeneratedDocument(
            type=document_type,
            raw_content=raw_content,
            html_content=html_content,
            job_id=request.job.id,
        )

    async def _attempt(self, request: RequestData,
                       document_type: DocumentType) -> Tuple[Optional[GeneratedDocument], Optional[GenerationFailure]]:
        job = request.job
        try:
            document = await self._generate_document(request, document_type)
        except ConfigurationError:
            raise
        except ResumeForgeError as e:
            logger.error(f"    [!] {document_type.label} for {job.position} @ {job.company_name} failed: {e}")
            return None, GenerationFailure(job.id, document_type, str(e))
        except Exception as e:
            logger.exception(f"    [!] Unexpected error generating {document_type.label} for "
                             f"{job.position} @ {job.company_name}: {e}")
            return None, GenerationFailure(job.id, document_type, str(e))

        logger.info(f"    > {document_type.label.capitalize()} ready ({len(document.html_content)} chars)")
        return document, None

    async def generate_for_request(
        self, request: RequestData
    ) -> Tuple[List[GeneratedDocument], List[GenerationFailure]]:
        """
        Produces every requested document for one job. Returns what could be
        produced plus a failure entry for each document that could not.
        """
        document_types = DocumentSelection(request.document_selection).document_types()

        if self.parallel_document_types and len(document_types) > 1:
            outcomes = await asyncio.gather(*(self._attempt(request, dt) for dt in document_types))
        else:
            outcomes = [await self._attempt(request, dt) for dt in document_types]

        documents = [doc for doc, _ in outcomes if doc is not None]
        failures = [failure for _, failure in outcomes if failure is not None]
        return documents, failures

    async def run(self, resume: ParsedResumeData, jobs: Sequence[JobTarget],
                  document_selection: Union[DocumentSelection, str] = DocumentSelection.BOTH,
                  examples: Optional[ExampleTexts] = None,
                  portfolio: Optional[PortfolioData] = None,
                  cancel_event: Optional[asyncio.Event] = None,
                  on_progress: Optional[ProgressCallback] = None) -> GenerationResult:
        """
        Generates documents for every selected job in `jobs`.

        Raises InputError before any provider call when there is nothing to
        work with. Cancellation is checked before each job starts; a job
        already in flight always finishes.
        """
        selection = DocumentSelection(document_selection)
        if resume is None or not (resume.raw_text or "").strip():
            raise InputError("Resume has no text. Upload or parse a resume first.")
        selected = [job for job in jobs if job.selected]
        if not selected:
            raise InputError("No jobs selected")

        examples = examples or ExampleTexts()
        total = len(selected)
        requested = total * len(selection.document_types())
        slots: List[Optional[Tuple[List[GeneratedDocument], List[GenerationFailure]]]] = [None] * total
        semaphore = asyncio.Semaphore(self.concurrency)
        skipped = []

        self.state = RunState.RUNNING
        logger.info(f"Generating {selection.value} for {total} job(s)...")

        async def process(index: int, job: JobTarget):
            async with semaphore:
                if cancel_event is not None and cancel_event.is_set():
                    skipped.append(job)
                    return
                self.current_job_index = index
                logger.info(f"[{index + 1}/{total}] {job.position} @ {job.company_name}")
                if on_progress:
                    on_progress(index + 1, total, job)
                request = RequestData(
                    resume=resume,
                    job=job,
                    document_selection=selection,
                    examples=examples,
                    portfolio=portfolio,
                )
                slots[index] = await self.generate_for_request(request)

        tasks = [asyncio.create_task(process(i, job)) for i, job in enumerate(selected)]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            self.state = RunState.FAILED
            raise
        finally:
            self.current_job_index = None

        documents: List[GeneratedDocument] = []
        failures: List[GenerationFailure] = []
        for slot in slots:
            if slot is not None:
                documents.extend(slot[0])
                failures.extend(slot[1])

        if skipped:
            logger.warning(f"Cancelled: {len(skipped)} job(s) not started")

        if documents:
            self._save_settings(resume, jobs, selected, selection)

        jobs_represented = len({doc.job_id for doc in documents})
        self.state = RunState.COMPLETED if len(documents) == requested else RunState.FAILED
        logger.info(f"Generated {len(documents)} of {requested} document(s) for {jobs_represented} job(s)")

        error = None
        if not documents:
            if skipped and not failures:
                error = "Generation cancelled before any document was produced"
            elif failures:
                error = f"No documents were generated. Last error: {failures[-1].error}"
            else:
                error = "No documents were generated"

        return GenerationResult(
            success=bool(documents),
            documents=documents,
            error=error,
            jobs_represented=jobs_represented,
            requested_documents=requested,
            failures=failures,
            cancelled=bool(skipped),
            state=self.state.value,
        )

    def _save_settings(self, resume: ParsedResumeData, jobs: Sequence[JobTarget],
                       selected: Sequence[JobTarget], selection: DocumentSelection):
        if self.settings_store is None:
            return
        record = SettingsRecord.from_run(settings_record_name(selected), resume, list(jobs), selection)
        try:
            self.settings_store.save(record)
        except Exception as e:
            logger.error(f"Failed to save recent settings: {e}")

    def run_sync(self, *args, **kwargs) -> GenerationResult:
        """Blocking wrapper around run() for callers without an event loop."""
        return asyncio.run(self.run(*args, **kwargs))
