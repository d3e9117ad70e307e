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
from typing import Any, Mapping

from .options import Builder, Options
from .protocol.constants import __lang__, __version__
from .uri import DEFAULT_PORT, DEFAULT_URL, Endpoint, resolve


def from_properties(props: Mapping[str, Any]) -> Options:
    """
    :param props: Properties map using the ``io.nats.client`` keys.

    ::

        import nats_options

        opts = nats_options.from_properties({
            "io.nats.client.servers": "nats://n1:4222,nats://n2:4222",
            "io.nats.client.name": "billing",
        })

    """
    return Options.from_properties(props)
