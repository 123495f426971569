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

import os
import shutil
import tempfile
import unittest

from resume_forge import document_store
from resume_forge.models import DocumentType, GeneratedDocument, JobTarget


def make_doc(job_id, doc_type=DocumentType.RESUME, html="<html></html>"):
    return GeneratedDocument(type=doc_type, raw_content="raw", html_content=html, job_id=job_id)


class TestFilenames(unittest.TestCase):
    def test_safe_slug(self):
        self.assertEqual(document_store.safe_slug("Acme, Inc."), "Acme_Inc")
        self.assertEqual(document_store.safe_slug("Senior Engineer (Backend)"), "Senior_Engineer_Backend")
        self.assertEqual(document_store.safe_slug("!!!"), "document")
        self.assertEqual(len(document_store.safe_slug("x" * 200)), document_store.MAX_SLUG_LENGTH)

    def test_document_filename(self):
        job = JobTarget(id="job-1", company_name="Acme", position="Data Engineer")
        self.assertEqual(document_store.document_filename(make_doc("job-1"), job), "Acme_Data_Engineer_Resume.html")
        self.assertEqual(
            document_store.document_filename(make_doc("job-1", DocumentType.COVER_LETTER), job),
            "Acme_Data_Engineer_CoverLetter.html",
        )
        self.assertEqual(document_store.document_filename(make_doc("job-9")), "job-9_Resume.html")


class TestDocumentStore(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_keeps_insertion_order(self):
        store = document_store.DocumentStore()
        store.add(make_doc("job-2"))
        store.extend([make_doc("job-1"), make_doc("job-2", DocumentType.COVER_LETTER)])

        self.assertEqual(len(store), 3)
        self.assertEqual([d.job_id for d in store], ["job-2", "job-1", "job-2"])
        self.assertEqual([d.type for d in store.for_job("job-2")], [DocumentType.RESUME, DocumentType.COVER_LETTER])

    def test_export(self):
        jobs = [
            JobTarget(id="job-1", company_name="Acme", position="Engineer"),
            JobTarget(id="job-2", company_name="Acme", position="Engineer"),
        ]
        store = document_store.DocumentStore([
            make_doc("job-1", html="<p>first</p>"),
            make_doc("job-2", html="<p>second</p>"),
            make_doc("job-1", DocumentType.COVER_LETTER),
        ])
        output_dir = os.path.join(self.test_dir, "out")

        written = store.export(output_dir, jobs)

        self.assertEqual(
            [p.name for p in written],
            ["Acme_Engineer_Resume.html", "Acme_Engineer_Resume_2.html", "Acme_Engineer_CoverLetter.html"],
        )
        self.assertEqual(written[1].read_text(encoding="utf-8"), "<p>second</p>")
        self.assertEqual(len(os.listdir(output_dir)), 3)


if __name__ == '__main__':
    unittest.main()
