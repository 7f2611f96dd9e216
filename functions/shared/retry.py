# Copyright 2025 Google LLC
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
# ==============================================================================

"""Bounded retry for transient upstream failures."""

import logging
from typing import Callable, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from shared.errors import UpstreamError

logger = logging.getLogger(__name__)

MAX_BACKOFF_SECONDS = 10

T = TypeVar("T")


def is_transient(error: BaseException) -> bool:
    """429s, 5xx responses and failed connections are worth another attempt."""
    return isinstance(error, UpstreamError) and error.is_transient


def call_with_retry(
    operation: Callable[[], T],
    max_attempts: int = 3,
    backoff_seconds: float = 1.0,
) -> T:
    """
    Runs `operation`, retrying transient UpstreamErrors with exponential backoff.

    The last error is re-raised once attempts are exhausted. Any other
    exception propagates immediately.
    """
    retrying = Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=backoff_seconds, max=MAX_BACKOFF_SECONDS),
        retry=retry_if_exception(is_transient),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    return retrying(operation)
