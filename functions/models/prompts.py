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

from shared.puzzle_id import puzzle_date

LINKLOOM_PROMPT = """You are the editor of "LinkLoom", a daily word puzzle.

Write puzzle #{puzzle_id} for {puzzle_day}. It must feel fresh, so avoid
themes that a daily puzzle would have used recently.

A LinkLoom puzzle has exactly 3 trivia questions. Each answer is a single
English word. The three answers are all connected by one hidden "link" word:
each answer forms a common compound word or well-known phrase with the link
(for example, answers "fire", "sun" and "moon" with link "light").

Rules:
- Return exactly 3 questions.
- "t" is the question text, one sentence, answerable by a general audience.
- "a" is the answer: one word, no spaces, lowercase.
- "h" is a short hint for the question that does not contain the answer.
- "link" is the connecting word: one word, no spaces, lowercase.
- "link_hint" is a short hint for the link that does not contain the link.
- Do not reveal the link inside any question or hint.
"""


def make_linkloom_prompt(puzzle_id: int) -> str:
    return LINKLOOM_PROMPT.format(
        puzzle_id=puzzle_id,
        puzzle_day=puzzle_date(puzzle_id).isoformat(),
    )
