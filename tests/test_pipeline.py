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

import asyncio
import time
import unittest
from datetime import date
from unittest.mock import MagicMock

from resume_forge import pipeline
from resume_forge.exceptions import (
    ConfigurationError,
    ContentGenerationError,
    InputError,
    PersistenceError,
)
from resume_forge.formatting import HtmlFormattingClient
from resume_forge.llm_client import ContentGenerationClient
from resume_forge.models import (
    DocumentSelection,
    DocumentType,
    JobTarget,
    ParsedResumeData,
    PersonalInfo,
    Reference,
    WorkExperience,
)


def make_resume():
    return ParsedResumeData(
        raw_text="Jane Doe\nSenior Engineer, Initech\nEngineer, Globex",
        personal_info=PersonalInfo(full_name="Jane Doe", email="jane@example.com"),
        work_experience=[
            WorkExperience("exp-1", "Senior Engineer", "Initech", "2019 - 2024", ["Cut latency by 40%"]),
            WorkExperience("exp-2", "Engineer", "Globex", "2015 - 2019", ["Built billing"]),
        ],
        references=[Reference("Ann Smith", "CTO", "ann@example.com")],
    )


def make_jobs(*companies, selected=True):
    return [
        JobTarget(id=f"job-{i}", company_name=company, position="Engineer",
                  job_description="Build APIs", selected=selected)
        for i, company in enumerate(companies, start=1)
    ]


def company_in(prompt):
    for company in ("Acme", "Globex Corp", "Initrode", "Hooli"):
        if company in prompt:
            return company
    return "?"


def fake_content_client(fail_for=(), delays=None):
    """Content client whose output names the job's company; can fail or stall per company."""
    client = MagicMock()

    def generate(prompt, document_type):
        company = company_in(prompt)
        if delays and company in delays:
            time.sleep(delays[company])
        if company in fail_for:
            raise ContentGenerationError(f"content failed for {company}", document_type.value)
        return f"{document_type.value} for {company}"

    client.generate.side_effect = generate
    return client


def fake_formatting_client():
    client = MagicMock()

    def format_html(content, document_type, personal_info, styled_example, references, portfolio):
        return f"<!DOCTYPE html><html><body><h1>{personal_info.full_name}</h1><p>{content}</p></body></html>"

    client.format.side_effect = format_html
    return client


class TestOrchestrator(unittest.IsolatedAsyncioTestCase):
    async def test_partial_failure_continues(self):
        jobs = make_jobs("Acme", "Globex Corp", "Initrode")
        orchestrator = pipeline.GenerationOrchestrator(
            fake_content_client(fail_for={"Globex Corp"}), fake_formatting_client()
        )

        result = await orchestrator.run(make_resume(), jobs, DocumentSelection.RESUME)

        self.assertTrue(result.success)
        self.assertEqual([d.job_id for d in result.documents], ["job-1", "job-3"])
        self.assertEqual(result.jobs_represented, 2)
        self.assertEqual(result.requested_documents, 3)
        self.assertTrue(result.is_partial)
        self.assertEqual(len(result.failures), 1)
        self.assertEqual(result.failures[0].job_id, "job-2")
        self.assertEqual(result.failures[0].document_type, DocumentType.RESUME)
        self.assertEqual(result.state, "failed")
        self.assertEqual(orchestrator.state, pipeline.RunState.FAILED)

    async def test_end_to_end_both_documents(self):
        content_provider = MagicMock()
        content_provider.name = "fake/content"
        content_provider.complete.return_value = "Jane Doe\nPROFESSIONAL SUMMARY\nBuilds APIs."
        formatting_provider = MagicMock()
        formatting_provider.name = "fake/formatting"
        formatting_provider.complete.return_value = (
            "```html\n<!DOCTYPE html><html><body><h1>[Your Name]</h1><p>Body</p></body></html>\n```"
        )
        orchestrator = pipeline.GenerationOrchestrator(
            ContentGenerationClient(content_provider), HtmlFormattingClient(formatting_provider)
        )
        job = JobTarget(id="job-acme", company_name="Acme", position="Engineer",
                        job_description="Build APIs", selected=True)

        result = await orchestrator.run(make_resume(), [job], "both")

        self.assertTrue(result.success)
        self.assertEqual(len(result.documents), 2)
        self.assertEqual([d.type for d in result.documents], [DocumentType.RESUME, DocumentType.COVER_LETTER])
        for document in result.documents:
            self.assertTrue(document.html_content)
            self.assertIn("Jane Doe", document.html_content)
            self.assertEqual(document.job_id, "job-acme")
        self.assertEqual(result.state, "completed")
        self.assertEqual(content_provider.complete.call_count, 2)
        self.assertEqual(formatting_provider.complete.call_count, 2)
        self.assertIn("Ann Smith", result.documents[0].html_content)
        self.assertNotIn("Ann Smith", result.documents[1].html_content)

        envelope = result.to_dict()
        self.assertTrue(envelope["success"])
        self.assertEqual([d["type"] for d in envelope["documents"]], ["resume", "cover-letter"])

    async def test_only_selected_jobs_are_processed(self):
        jobs = make_jobs("Acme", "Globex Corp") + make_jobs("Initrode", selected=False)
        content = fake_content_client()
        orchestrator = pipeline.GenerationOrchestrator(content, fake_formatting_client())

        result = await orchestrator.run(make_resume(), jobs, DocumentSelection.COVER_LETTER)

        self.assertEqual(len(result.documents), 2)
        self.assertTrue(all(d.type is DocumentType.COVER_LETTER for d in result.documents))
        self.assertEqual(content.generate.call_count, 2)

    async def test_settings_saved_after_success(self):
        store = MagicMock()
        jobs = make_jobs("Acme")
        orchestrator = pipeline.GenerationOrchestrator(
            fake_content_client(), fake_formatting_client(), settings_store=store
        )

        await orchestrator.run(make_resume(), jobs, DocumentSelection.BOTH)

        store.save.assert_called_once()
        record = store.save.call_args[0][0]
        self.assertEqual(record.name, "Engineer @ Acme")
        self.assertEqual(record.document_type, "both")
        self.assertEqual(record.style_name, "Resume + Cover Letter")
        self.assertEqual(record.resume_data["personalInfo"]["fullName"], "Jane Doe")

    async def test_persistence_failure_is_only_logged(self):
        store = MagicMock()
        store.save.side_effect = PersistenceError("disk full")
        orchestrator = pipeline.GenerationOrchestrator(
            fake_content_client(), fake_formatting_client(), settings_store=store
        )

        with self.assertLogs("resume_forge.pipeline", level="ERROR") as logs:
            result = await orchestrator.run(make_resume(), make_jobs("Acme"), DocumentSelection.RESUME)

        self.assertTrue(result.success)
        self.assertEqual(len(result.documents), 1)
        self.assertTrue(any("disk full" in line for line in logs.output))

    async def test_nothing_saved_when_nothing_generated(self):
        store = MagicMock()
        orchestrator = pipeline.GenerationOrchestrator(
            fake_content_client(fail_for={"Acme"}), fake_formatting_client(), settings_store=store
        )

        result = await orchestrator.run(make_resume(), make_jobs("Acme"), DocumentSelection.RESUME)

        self.assertFalse(result.success)
        self.assertIn("No documents were generated", result.error)
        self.assertEqual(result.to_dict(), {"success": False, "error": result.error})
        store.save.assert_not_called()

    async def test_cancellation_between_jobs(self):
        cancel = asyncio.Event()
        progress = []

        def on_progress(index, total, job):
            progress.append((index, total))
            cancel.set()

        orchestrator = pipeline.GenerationOrchestrator(fake_content_client(), fake_formatting_client())
        result = await orchestrator.run(
            make_resume(), make_jobs("Acme", "Globex Corp", "Initrode"), DocumentSelection.RESUME,
            cancel_event=cancel, on_progress=on_progress,
        )

        self.assertTrue(result.cancelled)
        self.assertEqual(progress, [(1, 3)])
        self.assertEqual([d.job_id for d in result.documents], ["job-1"])
        self.assertEqual(result.state, "failed")

    async def test_progress_reports_every_job(self):
        progress = []
        orchestrator = pipeline.GenerationOrchestrator(fake_content_client(), fake_formatting_client())

        await orchestrator.run(
            make_resume(), make_jobs("Acme", "Globex Corp", "Initrode"), DocumentSelection.RESUME,
            on_progress=lambda index, total, job: progress.append((index, total, job.company_name)),
        )

        self.assertEqual(progress, [(1, 3, "Acme"), (2, 3, "Globex Corp"), (3, 3, "Initrode")])

    async def test_concurrent_jobs_keep_submission_order(self):
        content = fake_content_client(delays={"Acme": 0.2, "Globex Corp": 0.1})
        orchestrator = pipeline.GenerationOrchestrator(content, fake_formatting_client(), concurrency=3)

        result = await orchestrator.run(
            make_resume(), make_jobs("Acme", "Globex Corp", "Initrode"), DocumentSelection.RESUME
        )

        self.assertEqual([d.job_id for d in result.documents], ["job-1", "job-2", "job-3"])

    async def test_parallel_document_types_keep_type_order(self):
        orchestrator = pipeline.GenerationOrchestrator(
            fake_content_client(), fake_formatting_client(), parallel_document_types=True
        )

        result = await orchestrator.run(make_resume(), make_jobs("Acme"), DocumentSelection.BOTH)

        self.assertEqual([d.type for d in result.documents], [DocumentType.RESUME, DocumentType.COVER_LETTER])

    async def test_input_errors_before_any_call(self):
        content = fake_content_client()
        orchestrator = pipeline.GenerationOrchestrator(content, fake_formatting_client())

        with self.assertRaises(InputError):
            await orchestrator.run(make_resume(), make_jobs("Acme", selected=False), DocumentSelection.BOTH)
        with self.assertRaises(InputError):
            await orchestrator.run(ParsedResumeData(raw_text=" "), make_jobs("Acme"), DocumentSelection.BOTH)
        content.generate.assert_not_called()

    async def test_configuration_error_aborts_run(self):
        content = MagicMock()
        content.generate.side_effect = ConfigurationError("openai API key not configured")
        orchestrator = pipeline.GenerationOrchestrator(content, fake_formatting_client())

        with self.assertRaises(ConfigurationError):
            await orchestrator.run(make_resume(), make_jobs("Acme", "Globex Corp"), DocumentSelection.RESUME)
        self.assertEqual(orchestrator.state, pipeline.RunState.FAILED)

    async def test_unexpected_errors_are_contained(self):
        formatting = MagicMock()
        formatting.format.side_effect = RuntimeError("unexpected")
        orchestrator = pipeline.GenerationOrchestrator(fake_content_client(), formatting)

        with self.assertLogs("resume_forge.pipeline", level="ERROR"):
            result = await orchestrator.run(make_resume(), make_jobs("Acme"), DocumentSelection.RESUME)

        self.assertFalse(result.success)
        self.assertEqual(result.failures[0].error, "unexpected")


class TestRunSync(unittest.TestCase):
    def test_run_sync(self):
        orchestrator = pipeline.GenerationOrchestrator(fake_content_client(), fake_formatting_client())
        result = orchestrator.run_sync(make_resume(), make_jobs("Acme"), "resume")
        self.assertTrue(result.success)
        self.assertEqual(orchestrator.state, pipeline.RunState.COMPLETED)


class TestSettingsRecordName(unittest.TestCase):
    def test_single_job(self):
        self.assertEqual(pipeline.settings_record_name(make_jobs("Acme")), "Engineer @ Acme")

    def test_many_jobs(self):
        name = pipeline.settings_record_name(make_jobs("Acme", "Hooli", "Initrode"), today=date(2025, 3, 4))
        self.assertEqual(name, "3 jobs - 2025-03-04")


if __name__ == '__main__':
    unittest.main()
