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
import tempfile
import unittest
from unittest.mock import patch

from resume_forge import ssl_helpers


class SslTestCase(unittest.TestCase):
    def setUp(self):
        ssl_helpers.set_ca_bundle_override(None)

    def tearDown(self):
        ssl_helpers.set_ca_bundle_override(None)


class TestGetCaBundle(SslTestCase):
    def test_system_default(self):
        with patch.dict(os.environ, {}, clear=True):
            self.assertIs(ssl_helpers.get_ca_bundle(), True)

    def test_env_precedence(self):
        env = {"SSL_CERT_FILE": "/path/ssl.pem"}
        with patch.dict(os.environ, env, clear=True):
            self.assertEqual(ssl_helpers.get_ca_bundle(), "/path/ssl.pem")

        env["CURL_CA_BUNDLE"] = "/path/curl.pem"
        with patch.dict(os.environ, env, clear=True):
            self.assertEqual(ssl_helpers.get_ca_bundle(), "/path/curl.pem")

        env["REQUESTS_CA_BUNDLE"] = "/path/requests.pem"
        with patch.dict(os.environ, env, clear=True):
            self.assertEqual(ssl_helpers.get_ca_bundle(), "/path/requests.pem")

    def test_override_wins(self):
        with tempfile.NamedTemporaryFile(suffix=".pem") as bundle:
            ssl_helpers.set_ca_bundle_override(bundle.name)
            with patch.dict(os.environ, {"REQUESTS_CA_BUNDLE": "/path/requests.pem"}, clear=True):
                self.assertEqual(ssl_helpers.get_ca_bundle(), bundle.name)

    def test_missing_override_warns(self):
        with self.assertLogs("resume_forge.ssl_helpers", level="WARNING"):
            ssl_helpers.set_ca_bundle_override("/nonexistent/bundle.pem")


class TestConfigureSslEnv(SslTestCase):
    def test_exports_custom_bundle_for_sdks(self):
        with patch.dict(os.environ, {"REQUESTS_CA_BUNDLE": "/corp/proxy.pem"}, clear=True):
            ssl_helpers.configure_ssl_env()
            self.assertEqual(os.environ.get("SSL_CERT_FILE"), "/corp/proxy.pem")

    def test_no_op_with_system_store(self):
        with patch.dict(os.environ, {}, clear=True):
            ssl_helpers.configure_ssl_env()
            self.assertNotIn("SSL_CERT_FILE", os.environ)


if __name__ == '__main__':
    unittest.main()
