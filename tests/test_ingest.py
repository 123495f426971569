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

import base64
import io
import json
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch, MagicMock

import requests
from pypdf import PdfWriter
from pypdf.errors import FileNotDecryptedError

from resume_forge import ingest
from resume_forge.exceptions import InputError, ParseError


def fake_provider(response):
    provider = MagicMock()
    provider.name = "fake/model"
    provider.complete.return_value = response
    return provider


class TestReaders(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_read_docx_missing_file(self):
        content = ingest.read_docx(os.path.join(self.test_dir, "nonexistent.docx"))
        self.assertEqual(content, "")

    def test_read_pdf_missing_file(self):
        self.assertEqual(ingest.read_pdf(os.path.join(self.test_dir, "nonexistent.pdf")), "")

    def test_read_pdf_bytes_rejects_garbage(self):
        with self.assertRaises(InputError):
            ingest.read_pdf_bytes(b"definitely not a pdf")

    def test_read_pdf_bytes_rejects_encrypted_pdf(self):
        writer = PdfWriter()
        writer.add_blank_page(width=72, height=72)
        writer.encrypt("secret")
        buffer = io.BytesIO()
        writer.write(buffer)

        with self.assertRaises(InputError):
            ingest.read_pdf_bytes(buffer.getvalue())

    @patch('resume_forge.ingest.PdfReader')
    def test_page_extraction_errors_become_input_errors(self, mock_reader):
        page = MagicMock()
        page.extract_text.side_effect = FileNotDecryptedError("File has not been decrypted")
        mock_reader.return_value.is_encrypted = False
        mock_reader.return_value.pages = [page]

        with self.assertRaises(InputError):
            ingest.read_pdf_bytes(b"%PDF-1.7")

    def test_extract_text_from_html(self):
        html = "<html><head><style>p {color: red}</style><script>alert(1)</script></head>" \
               "<body><h1>Engineer</h1><p>Build APIs</p></body></html>"
        text = ingest.extract_text_from_html(html)
        self.assertEqual(text, "Engineer\nBuild APIs")

    def test_read_text_file_html(self):
        path = os.path.join(self.test_dir, "styled.html")
        with open(path, "w", encoding="utf-8") as f:
            f.write("<p>Styled</p>")
        self.assertEqual(ingest.read_text_file(path), "Styled")

    @patch('resume_forge.ingest.requests.get')
    def test_read_url(self, mock_get):
        mock_response = MagicMock()
        mock_response.text = "<html><body><p>Hello World. Senior Engineer wanted.</p></body></html>"
        mock_get.return_value = mock_response

        with patch.dict(os.environ, {}, clear=True):
            text = ingest.read_url("http://example.com/job")

        self.assertIn("Hello World", text)
        self.assertIs(mock_get.call_args.kwargs["verify"], True)

    @patch('resume_forge.ingest.requests.get')
    def test_read_url_failure(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("unreachable")
        with self.assertRaises(InputError):
            ingest.read_url("http://example.com/job")


class TestResumeParser(unittest.TestCase):
    def test_parse_text(self):
        payload = {
            "personalInfo": {"fullName": "Jane Doe", "email": "jane@example.com", "linkedIn": "https://li/jane"},
            "workExperience": [{"title": "Engineer", "company": "Initech", "period": "2019 - 2024",
                                "responsibilities": ["Built APIs"]}],
            "skills": ["Python", "SQL"],
            "references": [{"name": "Bob", "title": "CTO", "contact": "bob@example.com"}, {"title": "nameless"}],
        }
        parser = ingest.ResumeParser(fake_provider("```json\n" + json.dumps(payload) + "\n```"))

        parsed = parser.parse_text("Jane Doe resume text", "jane.pdf")

        self.assertEqual(parsed.raw_text, "Jane Doe resume text")
        self.assertEqual(parsed.personal_info.full_name, "Jane Doe")
        self.assertEqual(parsed.personal_info.linkedin, "https://li/jane")
        self.assertEqual(parsed.work_experience[0].id, "exp-1")
        self.assertEqual(parsed.skills[0].category, "Skills")
        self.assertEqual(parsed.skills[0].items, ["Python", "SQL"])
        self.assertEqual([r.name for r in parsed.references], ["Bob"])

    def test_invalid_json_keeps_raw_text(self):
        parser = ingest.ResumeParser(fake_provider("Sorry, I cannot help with that."))
        parsed = parser.parse_text("raw resume", "cv.pdf")

        self.assertEqual(parsed.raw_text, "raw resume")
        self.assertIsNone(parsed.personal_info)
        self.assertEqual(parsed.work_experience, [])

    def test_empty_response(self):
        parser = ingest.ResumeParser(fake_provider("  "))
        with self.assertRaises(ParseError):
            parser.parse_text("raw resume")

    def test_parse_rejects_bad_base64(self):
        parser = ingest.ResumeParser(fake_provider("{}"))
        with self.assertRaises(InputError):
            parser.parse("not base64!!", "cv.pdf")
        with self.assertRaises(InputError):
            parser.parse("", "cv.pdf")

    @patch('resume_forge.ingest.read_pdf_bytes', return_value="")
    def test_parse_scanned_pdf(self, _mock_read):
        parser = ingest.ResumeParser(fake_provider("{}"))
        with self.assertRaises(InputError):
            parser.parse(base64.b64encode(b"%PDF-1.4").decode(), "scan.pdf")

    @patch('resume_forge.ingest.read_pdf_bytes', return_value="Extracted text")
    def test_parse_pdf(self, _mock_read):
        provider = fake_provider('{"rawText": "Extracted text", "certifications": ["AWS SA"]}')
        parsed = ingest.ResumeParser(provider).parse(base64.b64encode(b"%PDF-1.4").decode(), "cv.pdf")

        self.assertEqual(parsed.certifications, ["AWS SA"])
        self.assertIn("Extracted text", provider.complete.call_args[0][1])


class TestJsonImports(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def _write(self, name, content):
        path = os.path.join(self.test_dir, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def test_load_resume_json_without_raw_text(self):
        parsed = ingest.load_resume_json('{"personalInfo": {"fullName": "Jane Doe"}}')
        self.assertEqual(parsed.personal_info.full_name, "Jane Doe")
        self.assertIn("Jane Doe", parsed.raw_text)

    def test_load_resume_json_errors(self):
        with self.assertRaises(InputError):
            ingest.load_resume_json("{not json")
        with self.assertRaises(InputError):
            ingest.load_resume_json("[1, 2]")

    def test_portfolio_json(self):
        self.assertEqual(ingest.load_portfolio_json('[{"url": "https://x.dev/#a"}]'), [{"url": "https://x.dev/#a"}])
        with self.assertRaises(InputError):
            ingest.load_portfolio_json('"just a string"')
        with self.assertRaises(InputError):
            ingest.load_portfolio_file(self._write("portfolio.txt", "{}"))

    def test_ingest_resume_dispatch(self):
        json_path = self._write("resume.json", '{"rawText": "Jane Doe"}')
        self.assertEqual(ingest.ingest_resume(json_path).raw_text, "Jane Doe")

        with self.assertRaises(InputError):
            ingest.ingest_resume(self._write("resume.txt", "Jane"))
        with self.assertRaises(InputError):
            ingest.ingest_resume(self._write("resume.pdf", "%PDF"))
        with self.assertRaises(InputError):
            ingest.ingest_resume(os.path.join(self.test_dir, "missing.json"))


if __name__ == '__main__':
    unittest.main()
