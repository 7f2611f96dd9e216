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
Orchestration for the two puzzle functions.

Each handler runs its steps in order and stops at the first failure, turning
the error raised by that step into a single terminal HandlerResult. The
handlers take their Settings explicitly and never read the environment.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Tuple

from auth.service_account import DATASTORE_SCOPE, fetch_access_token
from puzzles.generator import generate_puzzle
from shared.config import ServiceAccount, Settings
from shared.errors import PuzzleError
from shared.puzzle_id import puzzle_id_for
from store.firestore_rest import FirestoreRestPuzzleStore, PuzzleStore

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}
TEXT_HEADERS = {"Content-Type": "text/plain; charset=utf-8"}

GENERATION_FAILED_MESSAGE = "Failed to generate puzzle from Gemini."
GENERATION_AUTH_FAILED_MESSAGE = "Failed to authenticate with Firebase."
WRITE_FAILED_MESSAGE = "Failed to save puzzle to database."
RETRIEVAL_AUTH_FAILED_MESSAGE = "Failed to authenticate with the puzzle store."
NOT_FOUND_MESSAGE = "Could not find today's puzzle."


@dataclass
class HandlerResult:
    """The terminal outcome of one handler invocation."""

    status_code: int
    body: str
    headers: Dict[str, str] = field(default_factory=lambda: dict(TEXT_HEADERS))

    @property
    def ok(self) -> bool:
        return self.status_code == 200


def _error_envelope(status_code: int, message: str) -> HandlerResult:
    return HandlerResult(
        status_code=status_code,
        body=json.dumps({"error": message}),
        headers=dict(JSON_HEADERS),
    )


def _authenticate(settings: Settings) -> Tuple[ServiceAccount, str]:
    account = settings.service_account()
    return account, fetch_access_token(
        account,
        scope=DATASTORE_SCOPE,
        token_uri=settings.oauth_token_uri,
        timeout=settings.request_timeout_seconds,
    )


StoreFactory = Callable[[ServiceAccount, str], PuzzleStore]


def firestore_store_factory(settings: Settings) -> StoreFactory:
    """Returns a factory building the Firestore store for an authenticated account."""

    def build(account: ServiceAccount, access_token: str) -> PuzzleStore:
        return FirestoreRestPuzzleStore(
            project_id=account.project_id,
            access_token=access_token,
            base_url=settings.firestore_base_url,
            collection=settings.puzzles_collection,
            timeout=settings.request_timeout_seconds,
            max_attempts=settings.retry_max_attempts,
            backoff_seconds=settings.retry_backoff_seconds,
        )

    return build


def generate_and_store_puzzle(
    settings: Settings,
    now: datetime | None = None,
    store_factory: StoreFactory | None = None,
) -> HandlerResult:
    """
    Generates today's puzzle and upserts it into the store.

    Steps: derive the puzzle ID, generate with Gemini, authenticate, write.

    Args:
        settings (Settings): Credentials, endpoints and retry settings.
        now (datetime | None): The invocation time. Defaults to the wall clock.
        store_factory: Builds the store from the account and its access
            token. Defaults to the Firestore REST store.

    Returns:
        HandlerResult: 200 with a confirmation, or 500 naming the failed step.
    """
    if store_factory is None:
        store_factory = firestore_store_factory(settings)

    puzzle_id = puzzle_id_for(now)
    logger.info("Generating puzzle #%s", puzzle_id)

    try:
        puzzle = generate_puzzle(
            puzzle_id,
            api_key=settings.require_gemini_api_key(),
            model=settings.gemini_model,
            max_attempts=settings.retry_max_attempts,
            backoff_seconds=settings.retry_backoff_seconds,
        )
    except PuzzleError as e:
        logger.error("Error generating puzzle #%s [%s]: %s", puzzle_id, e.kind, e)
        return HandlerResult(status_code=500, body=GENERATION_FAILED_MESSAGE)

    try:
        account, access_token = _authenticate(settings)
    except PuzzleError as e:
        logger.error("Error getting Firebase token [%s]: %s", e.kind, e)
        return HandlerResult(status_code=500, body=GENERATION_AUTH_FAILED_MESSAGE)

    try:
        store_factory(account, access_token).write_puzzle(puzzle_id, puzzle)
    except PuzzleError as e:
        logger.error("Error saving puzzle #%s [%s]: %s", puzzle_id, e.kind, e)
        return HandlerResult(status_code=500, body=WRITE_FAILED_MESSAGE)

    return HandlerResult(
        status_code=200,
        body=f"Successfully generated and stored puzzle #{puzzle_id}.",
    )


def fetch_daily_puzzle(
    settings: Settings,
    now: datetime | None = None,
    store_factory: StoreFactory | None = None,
) -> HandlerResult:
    """
    Returns today's stored puzzle JSON verbatim.

    Steps: derive the puzzle ID, authenticate, read.

    Returns:
        HandlerResult: 200 with the raw puzzle JSON, 500 with an error
            envelope if authentication fails, or 404 with an error envelope
            if the puzzle cannot be read.
    """
    if store_factory is None:
        store_factory = firestore_store_factory(settings)

    puzzle_id = puzzle_id_for(now)

    try:
        account, access_token = _authenticate(settings)
    except PuzzleError as e:
        logger.error("Error getting Firebase token [%s]: %s", e.kind, e)
        return _error_envelope(500, RETRIEVAL_AUTH_FAILED_MESSAGE)

    try:
        puzzle_json = store_factory(account, access_token).read_puzzle_json(puzzle_id)
    except PuzzleError as e:
        logger.error("Error fetching puzzle #%s [%s]: %s", puzzle_id, e.kind, e)
        return _error_envelope(404, NOT_FOUND_MESSAGE)

    return HandlerResult(status_code=200, body=puzzle_json, headers=dict(JSON_HEADERS))
