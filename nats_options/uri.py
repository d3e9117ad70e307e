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

from dataclasses import dataclass
from typing import Iterable, List, Optional, Union
from urllib.parse import ParseResult, unquote, urlparse

from nats_options.errors import InvalidURIError

NATS_SCHEME = "nats"
TLS_SCHEME = "tls"
OPENTLS_SCHEME = "opentls"
KNOWN_SCHEMES = (NATS_SCHEME, TLS_SCHEME, OPENTLS_SCHEME)

DEFAULT_PORT = 4222
DEFAULT_URL = f"{NATS_SCHEME}://localhost:{DEFAULT_PORT}"


@dataclass(frozen=True)
class Endpoint:
    """
    Endpoint is a resolved server address: a known scheme, a host
    and a port, plus the user info embedded in the url if any.
    """
    scheme: str
    host: str
    port: int
    user_info: Optional[str] = None

    @property
    def is_secure(self) -> bool:
        return self.scheme in (TLS_SCHEME, OPENTLS_SCHEME)

    @property
    def netloc(self) -> str:
        host = self.host
        if ":" in host:
            host = f"[{host}]"
        return f"{host}:{self.port}"

    @property
    def username(self) -> Optional[str]:
        if self.user_info is None or self.user_info.count(":") != 1:
            return None
        return self.user_info.split(":")[0]

    @property
    def password(self) -> Optional[str]:
        if self.user_info is None or self.user_info.count(":") != 1:
            return None
        return self.user_info.split(":")[1]

    @property
    def token(self) -> Optional[str]:
        """
        User info without exactly one ':' separator is a bearer token.
        """
        if self.user_info is None or self.user_info.count(":") == 1:
            return None
        return self.user_info

    def __str__(self) -> str:
        if self.user_info is not None:
            return f"{self.scheme}://{self.user_info}@{self.netloc}"
        return f"{self.scheme}://{self.netloc}"


def _parse(raw: str) -> Optional[ParseResult]:
    try:
        uri = urlparse(raw)
        # Accessing the port validates it.
        uri.port
    except ValueError:
        return None
    return uri


def resolve(raw: str) -> Endpoint:
    """
    Resolves a server address into an Endpoint.

    Bare addresses such as ``demo.nats.io`` or ``localhost:4222``, which
    is also how servers announce cluster members, get the ``nats://``
    scheme prefixed. A missing port becomes the default port 4222::

        >>> str(resolve("localhost"))
        'nats://localhost:4222'

    """
    if raw is None:
        raise InvalidURIError("server", raw, "cannot be null")
    raw = raw.strip()

    uri = _parse(raw)
    if "://" not in raw and (uri is None or not uri.hostname):
        uri = _parse(f"{NATS_SCHEME}://{raw}")
    if uri is None:
        raise InvalidURIError("server", raw, "unable to parse server url")

    if uri.scheme not in KNOWN_SCHEMES:
        raise InvalidURIError("server", raw, "unknown scheme")

    if not uri.hostname:
        raise InvalidURIError("server", raw, "unable to parse server url")

    user_info = None
    if "@" in uri.netloc:
        user_info = unquote(uri.netloc.rpartition("@")[0]) or None

    return Endpoint(
        scheme=uri.scheme,
        host=uri.hostname,
        port=uri.port if uri.port is not None else DEFAULT_PORT,
        user_info=user_info,
    )


def split_servers(servers: Union[str, Iterable[Optional[str]]]) -> List[str]:
    """
    Splits comma joined server lists, trimming entries and skipping
    empty ones. Order is preserved.
    """
    if isinstance(servers, str):
        servers = [servers]
    found = []
    for entry in servers:
        if not entry:
            continue
        for s in entry.split(","):
            s = s.strip()
            if s:
                found.append(s)
    return found


def resolve_all(servers: Union[str, Iterable[Optional[str]]]) -> List[Endpoint]:
    return [resolve(s) for s in split_servers(servers)]
