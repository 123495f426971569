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
CA bundle handling for the provider SDKs when running behind an
intercepting proxy.

The OpenAI, Anthropic and Google GenAI clients are all httpx based and only
look at SSL_CERT_FILE, so whichever bundle wins the lookup below is exported
there before a client is built.

Lookup order:
  1. --ca-bundle on the command line
  2. REQUESTS_CA_BUNDLE
  3. CURL_CA_BUNDLE
  4. SSL_CERT_FILE
  5. the system / certifi store
"""

import os
import logging
from typing import Optional, Union

logger = logging.getLogger(__name__)

_ENV_VARS = ("REQUESTS_CA_BUNDLE", "CURL_CA_BUNDLE", "SSL_CERT_FILE")

_ca_bundle_override: Optional[str] = None


def set_ca_bundle_override(path: Optional[str]) -> None:
    """Pin the bundle from --ca-bundle. None clears the pin."""
    global _ca_bundle_override
    _ca_bundle_override = path
    if path:
        if not os.path.exists(path):
            logger.warning(f"CA bundle {path} does not exist; TLS handshakes will likely fail")
        logger.info(f"CA bundle override: {path}")


def get_ca_bundle() -> Union[str, bool]:
    """Bundle path to verify against, or True for the default trust store."""
    if _ca_bundle_override:
        return _ca_bundle_override
    for var in _ENV_VARS:
        value = os.environ.get(var)
        if value:
            logger.debug(f"CA bundle from {var}: {value}")
            return value
    return True


def configure_ssl_env() -> None:
    """Export the resolved bundle as SSL_CERT_FILE for httpx-based SDKs."""
    bundle = get_ca_bundle()
    if isinstance(bundle, str) and os.environ.get("SSL_CERT_FILE") != bundle:
        os.environ["SSL_CERT_FILE"] = bundle
        logger.debug(f"SSL_CERT_FILE={bundle}")
