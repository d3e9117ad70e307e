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
"""
Named factories for the capabilities that can be selected from a
properties map: error listeners, connection listeners and data ports.

Factories are registered explicitly, usually at import time of the module
that defines the implementation::

    from nats_options import registry

    registry.register_factory(registry.ERROR_LISTENER, "audit", AuditListener)

and then selected with ``io.nats.client.callback.error=audit``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from nats_options.errors import MissingRequiredError

ERROR_LISTENER = "error_listener"
CONNECTION_LISTENER = "connection_listener"
DATA_PORT = "data_port"

Factory = Callable[[], Any]

_logger = logging.getLogger(__name__)

_factories: Dict[str, Dict[str, Factory]] = {
    ERROR_LISTENER: {},
    CONNECTION_LISTENER: {},
    DATA_PORT: {},
}


def _kind(kind: str) -> Dict[str, Factory]:
    try:
        return _factories[kind]
    except KeyError:
        raise MissingRequiredError("kind", kind, "unknown factory kind")


def register_factory(kind: str, name: str, factory: Factory) -> None:
    if not callable(factory):
        raise TypeError(f"nats: factory for {name!r} is not callable")
    _kind(kind)[name] = factory
    _logger.debug("nats: registered %s factory %r", kind, name)


def unregister_factory(kind: str, name: str) -> None:
    _kind(kind).pop(name, None)


def get_factory(kind: str, name: str) -> Factory:
    try:
        return _kind(kind)[name]
    except KeyError:
        raise MissingRequiredError(
            kind, name, "no factory registered with that name"
        )


def create_instance(kind: str, name: str) -> Any:
    return get_factory(kind, name)()


def registered_names(kind: str) -> list:
    return sorted(_kind(kind))
