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

"""The LinkLoom puzzle record and its JSON encoding."""

import json
from dataclasses import asdict, dataclass
from typing import Any, List

from dacite import Config, from_dict
from dacite.exceptions import DaciteError

from shared.errors import DataError, PuzzleValidationError

QUESTIONS_PER_PUZZLE = 3


@dataclass
class Question:
    """One clue of the puzzle. Field names match the stored JSON keys."""

    t: str  # clue text
    a: str  # single-word answer
    h: str  # hint


@dataclass
class Puzzle:
    """A daily puzzle: three clues whose answers share a hidden link word."""

    questions: List[Question]
    link: str
    link_hint: str


def puzzle_from_dict(data: Any) -> Puzzle:
    if not isinstance(data, dict):
        raise DataError(f"Expected a puzzle object, got {type(data).__name__}.")
    try:
        return from_dict(data_class=Puzzle, data=data, config=Config(check_types=True))
    except DaciteError as e:
        raise DataError(f"Puzzle JSON has the wrong shape: {e}") from e


def parse_puzzle(text: str) -> Puzzle:
    """
    Parses puzzle JSON text into a Puzzle.

    Raises:
        DataError: If the text is not JSON or does not have the puzzle shape.
    """
    try:
        data = json.loads(text)
    except (TypeError, json.JSONDecodeError) as e:
        raise DataError(f"Puzzle text is not valid JSON: {e}") from e
    return puzzle_from_dict(data)


def puzzle_to_json(puzzle: Puzzle) -> str:
    return json.dumps(asdict(puzzle), ensure_ascii=False)


def _is_single_word(value: str) -> bool:
    return len(value.split()) == 1


def validate_puzzle(puzzle: Puzzle) -> Puzzle:
    """
    Checks the invariants the model is asked to honor.

    Exactly three questions, every field non-empty, and the link and every
    answer a single word.

    Raises:
        PuzzleValidationError: Listing every violated invariant.
    """
    problems = []
    if len(puzzle.questions) != QUESTIONS_PER_PUZZLE:
        problems.append(
            f"expected {QUESTIONS_PER_PUZZLE} questions, got {len(puzzle.questions)}"
        )
    for index, question in enumerate(puzzle.questions):
        if not question.t.strip():
            problems.append(f"question {index} has empty text")
        if not question.h.strip():
            problems.append(f"question {index} has empty hint")
        if not _is_single_word(question.a):
            problems.append(f"question {index} answer {question.a!r} is not one word")
    if not _is_single_word(puzzle.link):
        problems.append(f"link {puzzle.link!r} is not one word")
    if not puzzle.link_hint.strip():
        problems.append("link_hint is empty")

    if problems:
        raise PuzzleValidationError("Invalid puzzle: " + "; ".join(problems))
    return puzzle
