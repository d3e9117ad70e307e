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
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from nats_options import registry

_logger = logging.getLogger(__name__)


class Events(str, Enum):
    CONNECTED = "nats: connection opened"
    CLOSED = "nats: connection closed"
    DISCONNECTED = "nats: connection disconnected"
    RECONNECTED = "nats: connection reconnected"
    RESUBSCRIBED = "nats: subscriptions re-established"
    DISCOVERED_SERVERS = "nats: discovered servers"
    LAME_DUCK = "nats: lame duck mode"


@runtime_checkable
class ErrorListener(Protocol):
    """
    Receives the errors a connection cannot raise to the caller, e.g.
    -ERR protocol messages or failures in a background task.
    """

    def error_occurred(self, conn: Any, error: str) -> None:
        ...

    def exception_occurred(self, conn: Any, exc: BaseException) -> None:
        ...

    def slow_consumer_detected(self, conn: Any, consumer: Any) -> None:
        ...


@runtime_checkable
class ConnectionListener(Protocol):

    def connection_event(self, conn: Any, event: Events) -> None:
        ...


class LoggingErrorListener:
    """
    Provides a default way to handle async errors if the user
    does not provide one.
    """

    def error_occurred(self, conn: Any, error: str) -> None:
        _logger.error("nats: encountered error: %s", error)

    def exception_occurred(self, conn: Any, exc: BaseException) -> None:
        _logger.error("nats: encountered error", exc_info=exc)

    def slow_consumer_detected(self, conn: Any, consumer: Any) -> None:
        _logger.warning("nats: slow consumer detected: %s", consumer)


class LoggingConnectionListener:

    def connection_event(self, conn: Any, event: Events) -> None:
        _logger.info("%s", event.value)


registry.register_factory(
    registry.ERROR_LISTENER, "logging", LoggingErrorListener
)
registry.register_factory(
    registry.CONNECTION_LISTENER, "logging", LoggingConnectionListener
)
