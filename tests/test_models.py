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

import unittest

from resume_forge.models import (
    DocumentSelection,
    DocumentType,
    ExampleTexts,
    GeneratedDocument,
    GenerationResult,
    JobTarget,
    ParsedResumeData,
)


class TestDocumentSelection(unittest.TestCase):
    def test_document_types(self):
        self.assertEqual(DocumentSelection("resume").document_types(), [DocumentType.RESUME])
        self.assertEqual(DocumentSelection("cover-letter").document_types(), [DocumentType.COVER_LETTER])
        self.assertEqual(DocumentSelection.BOTH.document_types(), [DocumentType.RESUME, DocumentType.COVER_LETTER])

    def test_labels(self):
        self.assertEqual(DocumentType.COVER_LETTER.label, "cover letter")
        self.assertEqual(DocumentType.RESUME.label, "resume")


class TestParsedResumeData(unittest.TestCase):
    def test_from_dict_tolerates_loose_shapes(self):
        data = ParsedResumeData.from_dict({
            "rawText": "Jane",
            "personalInfo": {"name": " Jane Doe ", "linkedin": "https://li/jane"},
            "workExperience": [{"title": "Engineer", "responsibilities": "Built APIs"}, "junk"],
            "education": [{"degree": "BSc", "id": "edu-x"}],
            "skills": [{"category": "Languages", "items": ["Python"]}, "Docker", ""],
            "certifications": None,
            "references": [{"name": "Bob", "relationship": "Manager"}],
        })

        self.assertEqual(data.personal_info.full_name, "Jane Doe")
        self.assertEqual(data.personal_info.linkedin, "https://li/jane")
        self.assertEqual(len(data.work_experience), 1)
        self.assertEqual(data.work_experience[0].responsibilities, ["Built APIs"])
        self.assertEqual(data.education[0].id, "edu-x")
        self.assertEqual([s.category for s in data.skills], ["Languages", "Skills"])
        self.assertEqual(data.skills[1].items, ["Docker"])
        self.assertEqual(data.certifications, [])
        self.assertEqual(data.references[0].title, "Manager")

    def test_to_dict_round_trip(self):
        original = ParsedResumeData.from_dict({
            "rawText": "Jane",
            "personalInfo": {"fullName": "Jane Doe", "email": "jane@example.com"},
            "workExperience": [{"id": "exp-1", "title": "Engineer", "company": "Initech", "period": "2020"}],
        })
        self.assertEqual(ParsedResumeData.from_dict(original.to_dict()), original)


class TestJobTarget(unittest.TestCase):
    def test_round_trip(self):
        job = JobTarget(id="job-1", company_name="Acme", position="Engineer", location="Remote", selected=True)
        data = job.to_dict()
        self.assertEqual(data["companyName"], "Acme")
        self.assertEqual(JobTarget.from_dict(data), job)


class TestExampleTexts(unittest.TestCase):
    def test_lookup_by_type(self):
        examples = ExampleTexts(example_cover_letter_text="letter", styled_resume_text="styled")
        self.assertEqual(examples.content_example(DocumentType.COVER_LETTER), "letter")
        self.assertIsNone(examples.content_example(DocumentType.RESUME))
        self.assertEqual(examples.styled_example(DocumentType.RESUME), "styled")


class TestGenerationResult(unittest.TestCase):
    def test_envelope(self):
        doc = GeneratedDocument(DocumentType.RESUME, "raw", "<html></html>", "job-1")
        result = GenerationResult(success=True, documents=[doc], requested_documents=2)

        self.assertTrue(result.is_partial)
        self.assertEqual(result.to_dict(), {
            "success": True,
            "documents": [{"type": "resume", "rawContent": "raw", "htmlContent": "<html></html>", "jobId": "job-1"}],
        })

    def test_failure_envelope(self):
        result = GenerationResult(success=False, error="No jobs selected")
        self.assertEqual(result.to_dict(), {"success": False, "error": "No jobs selected"})


if __name__ == '__main__':
    unittest.main()
