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

from typing import Any, Optional, Tuple


class Error(Exception):
    pass


class ConfigConflictError(Error):
    """
    Two options that cannot be combined were both set.
    """

    def __init__(self, *fields: str) -> None:
        self.fields: Tuple[str, ...] = fields
        super().__init__(*fields)

    def __str__(self) -> str:
        return "nats: options can't have both " + " and ".join(self.fields)


class _FieldError(Error, ValueError):

    def __init__(
        self,
        field: Optional[str],
        value: Any = None,
        description: Optional[str] = None,
    ) -> None:
        self.field = field
        self.value = value
        self.description = description
        super().__init__(field, value, description)

    def _describe(self, what: str) -> str:
        msg = f"nats: {what}"
        if self.field:
            msg = f"{msg} for {self.field}"
        if self.description:
            msg = f"{msg}, {self.description}"
        return f"{msg} [{self.value!r}]"


class InvalidURIError(_FieldError):

    def __str__(self) -> str:
        return self._describe("invalid server url")


class InvalidNameError(_FieldError):

    def __str__(self) -> str:
        return self._describe("invalid name")


class OutOfRangeError(_FieldError):

    def __str__(self) -> str:
        return self._describe("value out of range")


class MissingRequiredError(_FieldError):

    def __str__(self) -> str:
        return self._describe("missing required value")


class PlatformUnavailableError(Error):
    """
    A default security capability could not be obtained from the
    running platform, e.g. the default SSL context.
    """

    def __init__(self, capability: str) -> None:
        self.capability = capability
        super().__init__(capability)

    def __str__(self) -> str:
        return f"nats: unable to create {self.capability}"


class InvalidUserCredentialsError(Error):

    def __init__(self, source: Any = None) -> None:
        self.source = source
        super().__init__(source)

    def __str__(self) -> str:
        if self.source is None:
            return "nats: invalid user credentials"
        return f"nats: invalid user credentials: {self.source}"
