# Copyright 2016-2021 The NATS Authors
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
"""
Connection options.

:class:`Builder` accumulates settings from fluent calls or from a
properties map, and :meth:`Builder.build` resolves them into an immutable
:class:`Options` that a connection reads for its whole lifetime,
reconnects included::

    from nats_options import Options

    opts = (
        Options.builder()
        .server("demo.nats.io, tls://secure.example.com:4443")
        .connection_name("orders")
        .max_reconnects(-1)
        .build()
    )

"""

from __future__ import annotations

import functools
import logging
import ssl
from dataclasses import dataclass
from pathlib import Path
from typing import (
    Any,
    Callable,
    Iterable,
    List,
    Mapping,
    Optional,
    Tuple,
    Union,
)

from typing_extensions import Self

from nats_options import registry, tls
from nats_options.auth import (
    AuthHandler,
    NKeyAuthHandler,
    Seed,
    UserCredentialsAuthHandler,
)
from nats_options.errors import (
    ConfigConflictError,
    InvalidNameError,
    MissingRequiredError,
    OutOfRangeError,
)
from nats_options.listeners import ConnectionListener, ErrorListener
from nats_options.protocol import command as prot_command
from nats_options.transport import DataPort, TcpDataPort
from nats_options.uri import (
    DEFAULT_URL,
    OPENTLS_SCHEME,
    TLS_SCHEME,
    Endpoint,
    resolve,
    resolve_all,
)
from nats_options.validator import (
    non_negative_duration,
    positive_duration,
    range_or_unlimited,
    require_non_empty,
    validate_prefix,
)

_logger = logging.getLogger(__name__)

DEFAULT_MAX_RECONNECT = 60
DEFAULT_RECONNECT_WAIT = 2.0  # in seconds
DEFAULT_CONNECTION_TIMEOUT = 2.0  # in seconds
DEFAULT_PING_INTERVAL = 120.0  # in seconds
DEFAULT_REQUEST_CLEANUP_INTERVAL = 5.0  # in seconds
DEFAULT_MAX_PINGS_OUT = 2
DEFAULT_RECONNECT_BUF_SIZE = 8_388_608
DEFAULT_MAX_CONTROL_LINE = 1024
DEFAULT_BUFFER_SIZE = 64 * 1024
DEFAULT_INBOX_PREFIX = "_INBOX."

INBOX_SEPARATOR = "."

# Properties namespace, shared with the other NATS clients.
PFX = "io.nats.client."
PROP_CONNECTION_CB = PFX + "callback.connection"
PROP_DATA_PORT_TYPE = PFX + "dataport.type"
PROP_ERROR_LISTENER = PFX + "callback.error"
PROP_MAX_PINGS = PFX + "maxpings"
PROP_PING_INTERVAL = PFX + "pinginterval"
PROP_CLEANUP_INTERVAL = PFX + "cleanupinterval"
PROP_CONNECTION_TIMEOUT = PFX + "timeout"
PROP_RECONNECT_BUF_SIZE = PFX + "reconnect.buffer.size"
PROP_RECONNECT_WAIT = PFX + "reconnect.wait"
PROP_MAX_RECONNECT = PFX + "reconnect.max"
PROP_PEDANTIC = PFX + "pedantic"
PROP_VERBOSE = PFX + "verbose"
PROP_NO_ECHO = PFX + "noecho"
PROP_CONNECTION_NAME = PFX + "name"
PROP_NORANDOMIZE = PFX + "norandomize"
PROP_SERVERS = PFX + "servers"
PROP_PASSWORD = PFX + "password"
PROP_USERNAME = PFX + "username"
PROP_TOKEN = PFX + "token"
PROP_URL = PFX + "url"
PROP_SECURE = PFX + "secure"
PROP_OPENTLS = PFX + "opentls"
PROP_USE_OLD_REQUEST_STYLE = "use.old.request.style"
PROP_MAX_CONTROL_LINE = "max.control.line"
PROP_UTF8_SUBJECTS = "allow.utf8.subjects"
PROP_INBOX_PREFIX = "inbox.prefix"

DataPortFactory = Callable[[], DataPort]


def _check_auth_conflict(username: Optional[str], token: Optional[str]) -> None:
    if username is not None and token is not None:
        raise ConfigConflictError("token", "username")


def _normalize_inbox_prefix(prefix: Optional[str]) -> str:
    prefix = require_non_empty(prefix, "inbox_prefix")
    validate_prefix(prefix)
    root = prefix.rstrip(INBOX_SEPARATOR)
    if not root:
        raise InvalidNameError("inbox_prefix", prefix, "cannot be only dots")
    return root + INBOX_SEPARATOR


def _normalize_max_reconnect(n: Optional[int]) -> Optional[int]:
    if n is None or n == 0:
        return n
    return range_or_unlimited(n, "max_reconnect")


@dataclass(frozen=True)
class Options:
    """
    Options is the resolved, read-only configuration of a connection.

    Instances are usually created by :meth:`Builder.build`. Constructing
    one directly applies the same bounds and normalization, so every
    instance is valid and safe to share between threads and between dial
    attempts.
    """
    servers: Tuple[Endpoint, ...]
    no_randomize: bool = False
    connection_name: Optional[str] = None
    verbose: bool = False
    pedantic: bool = False
    no_echo: bool = False
    utf8_support: bool = False
    ssl_context: Optional[ssl.SSLContext] = None
    # None stands for unlimited, 0 disables reconnecting.
    max_reconnect: Optional[int] = DEFAULT_MAX_RECONNECT
    reconnect_wait: float = DEFAULT_RECONNECT_WAIT
    connection_timeout: float = DEFAULT_CONNECTION_TIMEOUT
    ping_interval: float = DEFAULT_PING_INTERVAL
    request_cleanup_interval: float = DEFAULT_REQUEST_CLEANUP_INTERVAL
    max_pings_out: int = DEFAULT_MAX_PINGS_OUT
    reconnect_buffer_size: int = DEFAULT_RECONNECT_BUF_SIZE
    max_control_line: int = DEFAULT_MAX_CONTROL_LINE
    buffer_size: int = DEFAULT_BUFFER_SIZE
    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None
    inbox_prefix: str = DEFAULT_INBOX_PREFIX
    old_request_style: bool = False
    track_advanced_stats: bool = False
    auth_handler: Optional[AuthHandler] = None
    error_listener: Optional[ErrorListener] = None
    connection_listener: Optional[ConnectionListener] = None
    data_port_factory: DataPortFactory = TcpDataPort

    def __post_init__(self) -> None:
        _check_auth_conflict(self.username, self.token)

        servers = tuple(self.servers)
        if not servers:
            raise MissingRequiredError("servers", servers, "cannot be empty")
        object.__setattr__(self, "servers", servers)

        if self.max_pings_out < 1:
            raise OutOfRangeError(
                "max_pings_out", self.max_pings_out, "must be at least 1"
            )
        for name in ("buffer_size", "max_control_line"):
            size = getattr(self, name)
            if size <= 0:
                raise OutOfRangeError(name, size, "must be greater than 0")
        if self.reconnect_buffer_size < 0:
            raise OutOfRangeError(
                "reconnect_buffer_size", self.reconnect_buffer_size,
                "must be greater than or equal to 0"
            )

        object.__setattr__(
            self, "max_reconnect", _normalize_max_reconnect(self.max_reconnect)
        )
        object.__setattr__(
            self, "connection_timeout",
            positive_duration(self.connection_timeout, "connection_timeout")
        )
        for name in ("reconnect_wait", "ping_interval",
                     "request_cleanup_interval"):
            object.__setattr__(
                self, name, non_negative_duration(getattr(self, name), name)
            )
        object.__setattr__(
            self, "inbox_prefix", _normalize_inbox_prefix(self.inbox_prefix)
        )

    @staticmethod
    def builder() -> Builder:
        return Builder()

    @classmethod
    def from_properties(cls, props: Mapping[str, Any]) -> Options:
        return Builder.from_properties(props).build()

    @property
    def tls_required(self) -> bool:
        return self.ssl_context is not None

    @property
    def randomize_servers(self) -> bool:
        return not self.no_randomize

    @property
    def server_urls(self) -> List[str]:
        return [str(s) for s in self.servers]

    def build_data_port(self) -> DataPort:
        return self.data_port_factory()

    def connect_options(
        self,
        server: Union[Endpoint, str],
        *,
        include_auth: bool,
        nonce: Optional[Union[bytes, str]] = None,
    ) -> str:
        """
        Returns the CONNECT payload for a dial attempt to ``server``.
        """
        if isinstance(server, str):
            server = resolve(server)
        return prot_command.connect_options(
            self, server, include_auth=include_auth, nonce=nonce
        )


def _parse_bool(value: Any) -> bool:
    # Anything but "true" is False, same as the other clients.
    return str(value).lower() == "true"


def _parse_int(props: Mapping[str, Any], key: str, default: int) -> int:
    try:
        return int(props[key])
    except (TypeError, ValueError):
        _logger.debug(
            "nats: invalid value %r for %s, using %s", props[key], key,
            default
        )
        return default


def _parse_at_least(props: Mapping[str, Any], key: str, default: int,
                    minimum: int = 0) -> int:
    n = _parse_int(props, key, -1)
    if n < minimum:
        _logger.debug("nats: using default %s for %s", default, key)
        return default
    return n


def _parse_millis(props: Mapping[str, Any], key: str, default: float,
                 minimum: int = 0) -> float:
    ms = _parse_int(props, key, -1)
    if ms < minimum:
        _logger.debug("nats: using default %ss for %s", default, key)
        return default
    return ms / 1000.0


class Builder:
    """
    Builder collects connection settings and validates them on build().

    It is meant to be used from a single thread and then discarded.
    """

    def __init__(self) -> None:
        self._servers: List[Endpoint] = []
        self._no_randomize = False
        self._connection_name: Optional[str] = None
        self._verbose = False
        self._pedantic = False
        self._ssl_context: Optional[ssl.SSLContext] = None
        self._ssl_context_factory: Optional[Callable[[], ssl.SSLContext]] = None
        self._max_reconnect: Optional[int] = DEFAULT_MAX_RECONNECT
        self._reconnect_wait: Optional[float] = DEFAULT_RECONNECT_WAIT
        self._connection_timeout: Optional[float] = DEFAULT_CONNECTION_TIMEOUT
        self._ping_interval: Optional[float] = DEFAULT_PING_INTERVAL
        self._request_cleanup_interval: Optional[float] = DEFAULT_REQUEST_CLEANUP_INTERVAL
        self._max_pings_out = DEFAULT_MAX_PINGS_OUT
        self._reconnect_buffer_size = DEFAULT_RECONNECT_BUF_SIZE
        self._max_control_line = DEFAULT_MAX_CONTROL_LINE
        self._buffer_size = DEFAULT_BUFFER_SIZE
        self._username: Optional[str] = None
        self._password: Optional[str] = None
        self._token: Optional[str] = None
        self._inbox_prefix: Optional[str] = DEFAULT_INBOX_PREFIX
        self._old_request_style = False
        self._track_advanced_stats = False
        self._no_echo = False
        self._utf8_support = False
        self._auth_handler: Optional[AuthHandler] = None
        self._error_listener: Optional[ErrorListener] = None
        self._connection_listener: Optional[ConnectionListener] = None
        self._data_port_factory: DataPortFactory = TcpDataPort

    @classmethod
    def from_properties(cls, props: Optional[Mapping[str, Any]]) -> Builder:
        """
        Creates a builder from a properties map using the ``io.nats.client``
        key namespace. Unknown keys are ignored.

        Unparseable numbers, and numbers build() would reject, fall back to
        the defaults. Booleans are only true when set to ``"true"``.
        """
        if props is None:
            raise MissingRequiredError("properties", props, "cannot be null")

        b = cls()
        if PROP_URL in props:
            b.server(props[PROP_URL] or DEFAULT_URL)
        if PROP_USERNAME in props:
            b._username = props[PROP_USERNAME]
        if PROP_PASSWORD in props:
            b._password = props[PROP_PASSWORD]
        if PROP_TOKEN in props:
            b._token = props[PROP_TOKEN]
        if PROP_SERVERS in props:
            servers = props[PROP_SERVERS]
            if not servers:
                raise MissingRequiredError(
                    PROP_SERVERS, servers, "cannot be empty"
                )
            b.server(servers)
        if PROP_NORANDOMIZE in props:
            b._no_randomize = _parse_bool(props[PROP_NORANDOMIZE])
        if PROP_SECURE in props and _parse_bool(props[PROP_SECURE]):
            b.secure()
        if PROP_OPENTLS in props and _parse_bool(props[PROP_OPENTLS]):
            b.opentls()
        if PROP_CONNECTION_NAME in props:
            b._connection_name = props[PROP_CONNECTION_NAME]
        if PROP_VERBOSE in props:
            b._verbose = _parse_bool(props[PROP_VERBOSE])
        if PROP_NO_ECHO in props:
            b._no_echo = _parse_bool(props[PROP_NO_ECHO])
        if PROP_UTF8_SUBJECTS in props:
            b._utf8_support = _parse_bool(props[PROP_UTF8_SUBJECTS])
        if PROP_PEDANTIC in props:
            b._pedantic = _parse_bool(props[PROP_PEDANTIC])
        if PROP_MAX_RECONNECT in props:
            n = _parse_int(props, PROP_MAX_RECONNECT, DEFAULT_MAX_RECONNECT)
            b._max_reconnect = DEFAULT_MAX_RECONNECT if n < -1 else n
        if PROP_RECONNECT_WAIT in props:
            b._reconnect_wait = _parse_millis(
                props, PROP_RECONNECT_WAIT, DEFAULT_RECONNECT_WAIT
            )
        if PROP_RECONNECT_BUF_SIZE in props:
            b._reconnect_buffer_size = _parse_at_least(
                props, PROP_RECONNECT_BUF_SIZE, DEFAULT_RECONNECT_BUF_SIZE
            )
        if PROP_CONNECTION_TIMEOUT in props:
            b._connection_timeout = _parse_millis(
                props, PROP_CONNECTION_TIMEOUT, DEFAULT_CONNECTION_TIMEOUT,
                minimum=1
            )
        if PROP_MAX_CONTROL_LINE in props:
            b._max_control_line = _parse_at_least(
                props, PROP_MAX_CONTROL_LINE, DEFAULT_MAX_CONTROL_LINE,
                minimum=1
            )
        if PROP_PING_INTERVAL in props:
            b._ping_interval = _parse_millis(
                props, PROP_PING_INTERVAL, DEFAULT_PING_INTERVAL
            )
        if PROP_CLEANUP_INTERVAL in props:
            b._request_cleanup_interval = _parse_millis(
                props, PROP_CLEANUP_INTERVAL, DEFAULT_REQUEST_CLEANUP_INTERVAL
            )
        if PROP_MAX_PINGS in props:
            n = _parse_int(props, PROP_MAX_PINGS, DEFAULT_MAX_PINGS_OUT)
            b._max_pings_out = DEFAULT_MAX_PINGS_OUT if n < 1 else n
        if PROP_USE_OLD_REQUEST_STYLE in props:
            b._old_request_style = _parse_bool(
                props[PROP_USE_OLD_REQUEST_STYLE]
            )
        if PROP_ERROR_LISTENER in props:
            b._error_listener = registry.create_instance(
                registry.ERROR_LISTENER, props[PROP_ERROR_LISTENER]
            )
        if PROP_CONNECTION_CB in props:
            b._connection_listener = registry.create_instance(
                registry.CONNECTION_LISTENER, props[PROP_CONNECTION_CB]
            )
        if PROP_DATA_PORT_TYPE in props:
            b._data_port_factory = registry.get_factory(
                registry.DATA_PORT, props[PROP_DATA_PORT_TYPE]
            )
        if PROP_INBOX_PREFIX in props:
            b.inbox_prefix(props[PROP_INBOX_PREFIX] or DEFAULT_INBOX_PREFIX)
        return b

    def server(self, url: str) -> Self:
        """
        Adds one server, or several joined with commas. Servers are
        dialed in the order they were added unless randomized.
        """
        return self.servers([url])

    def servers(self, urls: Iterable[Optional[str]]) -> Self:
        self._servers.extend(resolve_all(urls))
        return self

    def no_randomize(self) -> Self:
        self._no_randomize = True
        return self

    def no_echo(self) -> Self:
        self._no_echo = True
        return self

    def support_utf8_subjects(self) -> Self:
        self._utf8_support = True
        return self

    def connection_name(self, name: Optional[str]) -> Self:
        self._connection_name = name
        return self

    def inbox_prefix(self, prefix: str) -> Self:
        self._inbox_prefix = prefix
        return self

    def verbose(self) -> Self:
        self._verbose = True
        return self

    def pedantic(self) -> Self:
        self._pedantic = True
        return self

    def turn_on_advanced_stats(self) -> Self:
        self._track_advanced_stats = True
        return self

    def old_request_style(self) -> Self:
        self._old_request_style = True
        return self

    def secure(self) -> Self:
        """
        Uses the platform default SSL context, acquired on build().
        """
        self._ssl_context = None
        self._ssl_context_factory = tls.default_context
        return self

    def opentls(self) -> Self:
        """
        Uses an SSL context that trusts any server certificate.
        """
        self._ssl_context = None
        self._ssl_context_factory = tls.open_context
        return self

    def tls(
        self,
        ca_file: Optional[str] = None,
        cert_file: Optional[str] = None,
        key_file: Optional[str] = None,
    ) -> Self:
        """
        Verifies the server against ``ca_file``, presenting ``cert_file``
        and ``key_file`` when the server requires a client certificate.
        The files are loaded on build().
        """
        self._ssl_context = None
        self._ssl_context_factory = functools.partial(
            tls.client_context, ca_file, cert_file, key_file
        )
        return self

    def ssl_context(self, ctx: Optional[ssl.SSLContext]) -> Self:
        self._ssl_context = ctx
        self._ssl_context_factory = None
        return self

    def no_reconnect(self) -> Self:
        self._max_reconnect = 0
        return self

    def max_reconnects(self, max_reconnect: Optional[int]) -> Self:
        """
        Sets how many times to try reconnecting to each server. Use
        None, or -1, for unlimited and 0 to disable reconnecting.
        """
        self._max_reconnect = max_reconnect
        return self

    def reconnect_wait(self, seconds: Optional[float]) -> Self:
        self._reconnect_wait = seconds
        return self

    def max_control_line(self, size: int) -> Self:
        self._max_control_line = size
        return self

    def connection_timeout(self, seconds: float) -> Self:
        self._connection_timeout = seconds
        return self

    def ping_interval(self, seconds: Optional[float]) -> Self:
        self._ping_interval = seconds
        return self

    def request_cleanup_interval(self, seconds: Optional[float]) -> Self:
        self._request_cleanup_interval = seconds
        return self

    def max_pings_out(self, max_pings: int) -> Self:
        self._max_pings_out = max_pings
        return self

    def buffer_size(self, size: int) -> Self:
        self._buffer_size = size
        return self

    def reconnect_buffer_size(self, size: int) -> Self:
        self._reconnect_buffer_size = size
        return self

    def user_info(self, username: Optional[str], password: Optional[str]) -> Self:
        self._username = username
        self._password = password
        return self

    def token(self, token: Optional[str]) -> Self:
        self._token = token
        return self

    def auth_handler(self, handler: Optional[AuthHandler]) -> Self:
        self._auth_handler = handler
        return self

    def credentials(
        self,
        creds: Union[str, Path],
        seed_file: Optional[Union[str, Path]] = None,
    ) -> Self:
        """
        Authenticates with the JWT and seed of a ``.creds`` file.
        """
        return self.auth_handler(UserCredentialsAuthHandler(creds, seed_file))

    def nkey(self, seed: Seed) -> Self:
        """
        Authenticates with a bare nkey seed, or a file holding one.
        """
        return self.auth_handler(NKeyAuthHandler(seed))

    def error_listener(self, listener: Optional[ErrorListener]) -> Self:
        self._error_listener = listener
        return self

    def connection_listener(
        self, listener: Optional[ConnectionListener]
    ) -> Self:
        self._connection_listener = listener
        return self

    def data_port_factory(self, factory: DataPortFactory) -> Self:
        self._data_port_factory = factory
        return self

    def _infer_ssl_context(self) -> Optional[ssl.SSLContext]:
        if self._ssl_context is not None:
            return self._ssl_context
        if self._ssl_context_factory is not None:
            return self._ssl_context_factory()
        # Only a single server can decide the TLS mode from its scheme.
        if len(self._servers) != 1:
            return None
        scheme = self._servers[0].scheme
        if scheme == TLS_SCHEME:
            _logger.debug("nats: using default SSL context for tls:// server")
            return tls.default_context()
        if scheme == OPENTLS_SCHEME:
            return tls.open_context()
        return None

    def build(self) -> Options:
        """
        Validates the collected settings and returns the Options.

        The builder itself is left untouched.
        """
        _check_auth_conflict(self._username, self._token)

        servers = list(self._servers) or [resolve(DEFAULT_URL)]
        return Options(
            servers=tuple(servers),
            no_randomize=self._no_randomize,
            connection_name=self._connection_name,
            verbose=self._verbose,
            pedantic=self._pedantic,
            no_echo=self._no_echo,
            utf8_support=self._utf8_support,
            ssl_context=self._infer_ssl_context(),
            max_reconnect=self._max_reconnect,
            reconnect_wait=self._reconnect_wait,
            connection_timeout=self._connection_timeout,
            ping_interval=self._ping_interval,
            request_cleanup_interval=self._request_cleanup_interval,
            max_pings_out=self._max_pings_out,
            reconnect_buffer_size=self._reconnect_buffer_size,
            max_control_line=self._max_control_line,
            buffer_size=self._buffer_size,
            username=self._username,
            password=self._password,
            token=self._token,
            inbox_prefix=self._inbox_prefix,
            old_request_style=self._old_request_style,
            track_advanced_stats=self._track_advanced_stats,
            auth_handler=self._auth_handler,
            error_listener=self._error_listener,
            connection_listener=self._connection_listener,
            data_port_factory=self._data_port_factory,
        )
