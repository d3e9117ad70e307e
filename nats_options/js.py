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
Naming options for JetStream contexts and subscriptions. Managing
streams and consumers is left to the JetStream client.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from nats_options.options import DEFAULT_CONNECTION_TIMEOUT
from nats_options.validator import (
    empty_as_none,
    positive_duration,
    validate_durable,
    validate_js_subscribe_subject,
    validate_prefix,
    validate_pull_batch_size,
    validate_stream_name,
)

DEFAULT_API_PREFIX = "$JS.API."
DEFAULT_PULL_BATCH_SIZE = 1


@dataclass(frozen=True)
class JetStreamOptions:
    """
    JetStreamOptions holds the API prefix used to reach a JetStream
    domain or an imported account, and the timeout for API requests.
    """
    prefix: Optional[str] = None
    request_timeout: Optional[float] = None

    def __post_init__(self) -> None:
        prefix = empty_as_none(self.prefix)
        if prefix is None:
            prefix = DEFAULT_API_PREFIX
        else:
            validate_prefix(prefix)
            if not prefix.endswith("."):
                prefix = prefix + "."
        object.__setattr__(self, "prefix", prefix)

        timeout = self.request_timeout
        if timeout is None:
            timeout = DEFAULT_CONNECTION_TIMEOUT
        object.__setattr__(
            self, "request_timeout",
            positive_duration(timeout, "request_timeout")
        )

    @property
    def is_default_prefix(self) -> bool:
        return self.prefix == DEFAULT_API_PREFIX


@dataclass(frozen=True)
class PushSubscribeOptions:
    """
    Options for push subscriptions. A stream and a durable are both
    optional; empty values are treated as not set.
    """
    stream: Optional[str] = None
    durable: Optional[str] = None
    deliver_subject: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "stream", validate_stream_name(self.stream))
        object.__setattr__(self, "durable", validate_durable(self.durable))
        object.__setattr__(
            self, "deliver_subject", empty_as_none(self.deliver_subject)
        )
        if self.deliver_subject is not None:
            validate_js_subscribe_subject(self.deliver_subject)

    @classmethod
    def bind(cls, stream: str) -> PushSubscribeOptions:
        return cls(stream=validate_stream_name(stream, required=True))


@dataclass(frozen=True)
class PullSubscribeOptions:
    durable: str
    stream: Optional[str] = None
    batch_size: int = DEFAULT_PULL_BATCH_SIZE

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "durable", validate_durable(self.durable, required=True)
        )
        object.__setattr__(self, "stream", validate_stream_name(self.stream))
        validate_pull_batch_size(self.batch_size)
