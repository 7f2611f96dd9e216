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

"""Error taxonomy shared by the puzzle functions."""

from enum import StrEnum
from typing import Optional


class ErrorKind(StrEnum):
    CONFIGURATION = "configuration"
    UPSTREAM = "upstream"
    DATA = "data"
    INVALID_PUZZLE = "invalid_puzzle"
    NOT_FOUND = "not_found"


class PuzzleError(Exception):
    """Base class for every failure a handler step can raise."""

    kind = ErrorKind.DATA


class ConfigurationError(PuzzleError):
    """A required setting or credential is missing or malformed."""

    kind = ErrorKind.CONFIGURATION


class UpstreamError(PuzzleError):
    """An external service answered with a non-success status."""

    kind = ErrorKind.UPSTREAM

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        if self.status_code is None:
            return super().__str__()
        return f"{super().__str__()} (status {self.status_code}): {self.body}"

    @property
    def is_transient(self) -> bool:
        return self.status_code is None or (
            self.status_code == 429 or self.status_code >= 500
        )


class DataError(PuzzleError):
    """An upstream response was missing data or was not the expected JSON."""

    kind = ErrorKind.DATA


class PuzzleValidationError(DataError):
    """A parsed puzzle does not satisfy the puzzle record invariants."""

    kind = ErrorKind.INVALID_PUZZLE


class PuzzleNotFoundError(PuzzleError):
    kind = ErrorKind.NOT_FOUND
