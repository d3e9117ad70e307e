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
Validation of names, subjects and numeric bounds shared by the options.

Every check either returns the (possibly normalized) value or raises one
of the errors from :mod:`nats_options.errors` carrying the field name and
the offending value.
"""

from __future__ import annotations

from typing import Optional, TypeVar

from nats_options.errors import (
    InvalidNameError,
    MissingRequiredError,
    OutOfRangeError,
)

MAX_PULL_SIZE = 256
MIN_REPLICAS = 1
MAX_REPLICAS = 5

_DOT_STAR_GT = frozenset(".*>")
_WILD_GT_DOLLAR_SPACE_TAB = frozenset("*>$ \t")

_T = TypeVar("_T")


def empty_as_none(s: Optional[str]) -> Optional[str]:
    return s if s else None


def require_non_empty(s: Optional[str], field: str) -> str:
    if not s:
        raise InvalidNameError(field, s, "cannot be null or empty")
    return s


def require_no_whitespace(s: Optional[str], field: str) -> Optional[str]:
    if s is not None and any(c.isspace() for c in s):
        raise InvalidNameError(field, s, "cannot contain whitespace")
    return s


def forbid_dot_star_gt(s: Optional[str], field: str) -> Optional[str]:
    if s and not _DOT_STAR_GT.isdisjoint(s):
        raise InvalidNameError(field, s, "cannot contain a '.', '*' or '>'")
    return s


def forbid_wild_gt_dollar_space_tab(s: Optional[str],
                                    field: str) -> Optional[str]:
    if s and not _WILD_GT_DOLLAR_SPACE_TAB.isdisjoint(s):
        raise InvalidNameError(
            field, s, "cannot contain a wildcard, dollar sign or whitespace"
        )
    return s


def require_not_none(o: Optional[_T], field: str) -> _T:
    if o is None:
        raise MissingRequiredError(field, o, "cannot be null")
    return o


def range_or_unlimited(n: int, field: str) -> Optional[int]:
    """
    Accepts any positive bound or -1 for unlimited, which is returned
    as None. Zero and anything below -1 are rejected.
    """
    if n == 0 or n < -1:
        raise OutOfRangeError(
            field, n, "must be greater than zero or -1 for unlimited"
        )
    if n == -1:
        return None
    return n


def bounded_int(n: int, lo: int, hi: int, field: str) -> int:
    if n < lo or n > hi:
        raise OutOfRangeError(
            field, n, f"must be between {lo} and {hi} inclusive"
        )
    return n


def positive_duration(d: Optional[float], field: str) -> float:
    if d is None or d <= 0:
        raise OutOfRangeError(field, d, "required and must be greater than 0")
    return d


def non_negative_duration(d: Optional[float], field: str) -> float:
    if d is None:
        return 0.0
    if d < 0:
        raise OutOfRangeError(
            field, d, "must be greater than or equal to 0"
        )
    return d


# Composite rules used by the options builders.


def validate_subject(s: Optional[str]) -> str:
    return require_non_empty(s, "subject")


def validate_js_subscribe_subject(s: Optional[str]) -> str:
    s = require_non_empty(s, "subject")
    require_no_whitespace(s, "subject")
    return s


def validate_queue_name(s: Optional[str]) -> str:
    s = require_non_empty(s, "queue")
    require_no_whitespace(s, "queue")
    return s


def validate_reply_to(s: Optional[str]) -> Optional[str]:
    if s is not None and not s:
        raise InvalidNameError("reply_to", s, "cannot be blank when provided")
    return s


def validate_stream_name(s: Optional[str],
                         required: bool = False) -> Optional[str]:
    if required:
        require_non_empty(s, "stream")
    forbid_dot_star_gt(s, "stream")
    return empty_as_none(s)


def validate_durable(s: Optional[str],
                     required: bool = False) -> Optional[str]:
    if required:
        require_non_empty(s, "durable")
    forbid_dot_star_gt(s, "durable")
    return empty_as_none(s)


def validate_prefix(s: Optional[str]) -> Optional[str]:
    return forbid_wild_gt_dollar_space_tab(s, "prefix")


def validate_pull_batch_size(n: int) -> int:
    return bounded_int(n, 1, MAX_PULL_SIZE, "pull batch size")


def validate_max_consumers(n: int) -> Optional[int]:
    return range_or_unlimited(n, "max consumers")


def validate_max_messages(n: int) -> Optional[int]:
    return range_or_unlimited(n, "max messages")


def validate_max_bytes(n: int) -> Optional[int]:
    return range_or_unlimited(n, "max bytes")


def validate_max_message_size(n: int) -> Optional[int]:
    return range_or_unlimited(n, "max message size")


def validate_replicas(n: int) -> int:
    return bounded_int(n, MIN_REPLICAS, MAX_REPLICAS, "replicas")
