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

# Cloud functions for the LinkLoom daily puzzle.
#
# This file containing Python cloud functions must be named main.py.
# See https://cloud.google.com/run/docs/write-functions#python for more info.

# Third-party library imports
from firebase_functions import https_fn, logger, options, scheduler_fn

# Local application imports
from puzzles import handlers
from shared.config import get_settings

GENERATE_FUNCTION_TIMEOUT = 300
GET_FUNCTION_TIMEOUT = 60
DAILY_SCHEDULE = "0 0 * * *"


class PuzzleGenerationFailed(Exception):
    """Raised so the scheduler records a failed generation run."""


@scheduler_fn.on_schedule(
    schedule=DAILY_SCHEDULE,
    timeout_sec=GENERATE_FUNCTION_TIMEOUT,
    memory=options.MemoryOption.MB_512,
)
def generate_daily_puzzle(event: scheduler_fn.ScheduledEvent) -> None:
    """
    Generates today's puzzle with Gemini and stores it in Firestore.
    Triggered every day at midnight (Cloud Scheduler defaults to UTC).
    """
    logger.info("Daily puzzle generation started", schedule_time=str(event.schedule_time))
    result = handlers.generate_and_store_puzzle(get_settings())
    if not result.ok:
        logger.error("Daily puzzle generation failed", status=result.status_code)
        raise PuzzleGenerationFailed(result.body)
    logger.info(result.body)


@https_fn.on_request(
    timeout_sec=GET_FUNCTION_TIMEOUT,
    memory=options.MemoryOption.MB_256,
    cors=options.CorsOptions(cors_origins="*", cors_methods=["get"]),
)
def get_daily_puzzle(req: https_fn.Request) -> https_fn.Response:
    """
    Returns today's puzzle JSON exactly as it was stored.

    Args:
        req (https_fn.Request): Any GET request; no parameters are read.

    Returns:
        https_fn.Response: 200 with the puzzle, 404 before today's puzzle
        exists, or 500 if the function cannot authenticate.
    """
    if req.method != "GET":
        return https_fn.Response(
            '{"error": "Method not allowed."}',
            status=405,
            headers={"Content-Type": "application/json", "Allow": "GET"},
        )

    result = handlers.fetch_daily_puzzle(get_settings())
    if not result.ok:
        logger.warn("Daily puzzle not served", status=result.status_code)
    return https_fn.Response(
        result.body, status=result.status_code, headers=result.headers
    )
