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

"""
Puzzle storage on Firestore, through its REST API, plus an in-memory double.

Each puzzle is one document in the puzzles collection, keyed by puzzle ID,
holding the ID and the puzzle JSON as a single string field.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Protocol

import requests

from shared.config import DEFAULT_FIRESTORE_BASE_URL
from shared.errors import DataError, PuzzleNotFoundError, UpstreamError
from shared.puzzle import Puzzle, puzzle_to_json
from shared.retry import call_with_retry

logger = logging.getLogger(__name__)

PUZZLES_COLLECTION = "puzzles"
REQUEST_TIMEOUT = 30  # seconds


class PuzzleStore(Protocol):
    """Defines the operations the handlers need from puzzle storage."""

    def write_puzzle(self, puzzle_id: int, puzzle: Puzzle) -> None:
        ...

    def read_puzzle_json(self, puzzle_id: int) -> str:
        ...


def encode_puzzle_document(puzzle_id: int, puzzle: Puzzle) -> Dict[str, Any]:
    """Builds the Firestore typed field map for a puzzle document."""
    return {
        "fields": {
            # Firestore's JSON encoding carries int64 values as strings.
            "puzzleId": {"integerValue": str(puzzle_id)},
            "data": {"stringValue": puzzle_to_json(puzzle)},
        }
    }


def decode_puzzle_json(document: Any) -> str:
    """
    Returns the puzzle JSON string stored in a Firestore document, unmodified.

    Raises:
        DataError: If the document has no string `data` field.
    """
    try:
        value = document["fields"]["data"]["stringValue"]
    except (KeyError, TypeError) as e:
        raise DataError(f"Puzzle document has no data string: {e!r}") from e
    if not isinstance(value, str):
        raise DataError("Puzzle document data field is not a string.")
    return value


@dataclass
class InMemoryPuzzleStore:
    """Test double for puzzle storage, holding encoded documents by ID."""

    documents: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def write_puzzle(self, puzzle_id: int, puzzle: Puzzle) -> None:
        # Round-trip through JSON to mimic what Firestore would persist.
        self.documents[str(puzzle_id)] = json.loads(
            json.dumps(encode_puzzle_document(puzzle_id, puzzle))
        )

    def read_puzzle_json(self, puzzle_id: int) -> str:
        document = self.documents.get(str(puzzle_id))
        if document is None:
            raise PuzzleNotFoundError(f"No puzzle #{puzzle_id}.")
        return decode_puzzle_json(document)


@dataclass
class FirestoreRestPuzzleStore:
    """
    Firestore REST client for the puzzles collection.

    Authenticated with a bearer token from the service-account authenticator.
    """

    project_id: str
    access_token: str
    base_url: str = DEFAULT_FIRESTORE_BASE_URL
    collection: str = PUZZLES_COLLECTION
    timeout: float = REQUEST_TIMEOUT
    max_attempts: int = 3
    backoff_seconds: float = 1.0

    def document_url(self, puzzle_id: int) -> str:
        return (
            f"{self.base_url}/projects/{self.project_id}"
            f"/databases/(default)/documents/{self.collection}/{puzzle_id}"
        )

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        headers = {"Authorization": f"Bearer {self.access_token}"}
        try:
            response = requests.request(
                method, url, headers=headers, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise UpstreamError(f"Firestore unreachable: {e}") from e
        if response.status_code == 404 and method == "GET":
            raise PuzzleNotFoundError(f"No document at {url}.")
        if not response.ok:
            logger.error(
                "Firestore %s %s failed with status %s: %s",
                method,
                url,
                response.status_code,
                response.text,
            )
            raise UpstreamError(
                f"Firestore {method} failed",
                status_code=response.status_code,
                body=response.text,
            )
        return response

    def _request_with_retry(self, method: str, url: str, **kwargs) -> requests.Response:
        return call_with_retry(
            lambda: self._request(method, url, **kwargs),
            max_attempts=self.max_attempts,
            backoff_seconds=self.backoff_seconds,
        )

    def write_puzzle(self, puzzle_id: int, puzzle: Puzzle) -> None:
        """
        Creates or overwrites the document for `puzzle_id`.

        PATCH without an update mask replaces the whole document, so writing
        the same puzzle twice leaves the same stored state.
        """
        url = self.document_url(puzzle_id)
        self._request_with_retry(
            "PATCH", url, json=encode_puzzle_document(puzzle_id, puzzle)
        )
        logger.info("Stored puzzle #%s at %s", puzzle_id, url)

    def read_puzzle_json(self, puzzle_id: int) -> str:
        """
        Returns the stored puzzle JSON for `puzzle_id` as-is.

        Raises:
            PuzzleNotFoundError: If no document exists for the ID.
            UpstreamError: On any other non-success status.
            DataError: If the document is not JSON or has no data string.
        """
        response = self._request_with_retry("GET", self.document_url(puzzle_id))
        try:
            document = response.json()
        except ValueError as e:
            raise DataError(f"Firestore returned non-JSON body: {e}") from e
        return decode_puzzle_json(document)
