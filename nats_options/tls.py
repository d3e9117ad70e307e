# Copyright 2021 The NATS Authors
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#

from __future__ import annotations

import logging
import ssl
from typing import Optional

from nats_options.errors import PlatformUnavailableError

_logger = logging.getLogger(__name__)


def default_context() -> ssl.SSLContext:
    """
    Returns the platform default client context, verifying the server
    against the system trust store. There is no retry: a platform
    without one is reported right away.
    """
    try:
        return ssl.create_default_context(purpose=ssl.Purpose.SERVER_AUTH)
    except (ssl.SSLError, OSError, ValueError) as e:
        raise PlatformUnavailableError("default SSL context") from e


def open_context() -> ssl.SSLContext:
    """
    Returns a context that accepts any server certificate. Only meant
    for servers using self signed certificates during development.
    """
    try:
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        ctx.minimum_version = ssl.TLSVersion.TLSv1_2
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    except (ssl.SSLError, OSError, ValueError) as e:
        raise PlatformUnavailableError("open SSL context") from e
    _logger.debug("nats: created SSL context without certificate verification")
    return ctx


def client_context(
    ca_file: Optional[str] = None,
    cert_file: Optional[str] = None,
    key_file: Optional[str] = None,
) -> ssl.SSLContext:
    """
    Builds a verifying context trusting ``ca_file``, and presenting a
    client certificate when the server requires mutual TLS.
    """
    ctx = default_context()
    ctx.minimum_version = ssl.TLSVersion.TLSv1_2
    if ca_file:
        ctx.load_verify_locations(ca_file)
    if cert_file:
        ctx.load_cert_chain(certfile=cert_file, keyfile=key_file)
    return ctx
