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

"""Generates the daily LinkLoom puzzle with Gemini."""

import logging
from typing import List

from google import genai
from pydantic import BaseModel, Field

from models import gemini
from models import prompts
from shared.config import DEFAULT_GEMINI_MODEL
from shared.puzzle import QUESTIONS_PER_PUZZLE, Puzzle, parse_puzzle, validate_puzzle
from shared.retry import call_with_retry

logger = logging.getLogger(__name__)


# These are Pydantic BaseModels used to specify structured output to Gemini
class QuestionSchema(BaseModel):
    t: str
    a: str
    h: str


class PuzzleSchema(BaseModel):
    questions: List[QuestionSchema] = Field(
        min_length=QUESTIONS_PER_PUZZLE, max_length=QUESTIONS_PER_PUZZLE
    )
    link: str
    link_hint: str


def generate_puzzle(
    puzzle_id: int,
    api_key: str,
    model: str = DEFAULT_GEMINI_MODEL,
    client: genai.Client | None = None,
    max_attempts: int = 3,
    backoff_seconds: float = 1.0,
) -> Puzzle:
    """
    Asks Gemini for puzzle `puzzle_id` and returns it parsed and validated.

    Only the Gemini call is retried, and only for transient errors. A
    response that parses badly or breaks the puzzle invariants fails at once.

    Raises:
        UpstreamError: If Gemini keeps failing or rejects the request.
        DataError: If the response text is missing or not puzzle JSON.
        PuzzleValidationError: If the puzzle breaks an invariant.
    """
    prompt = prompts.make_linkloom_prompt(puzzle_id)
    text = call_with_retry(
        lambda: gemini.call_predict_with_schema(
            prompt,
            response_schema=PuzzleSchema,
            api_key=api_key,
            model=model,
            client=client,
        ),
        max_attempts=max_attempts,
        backoff_seconds=backoff_seconds,
    )
    puzzle = validate_puzzle(parse_puzzle(text))
    logger.info("Generated puzzle #%s with link %r", puzzle_id, puzzle.link)
    return puzzle
