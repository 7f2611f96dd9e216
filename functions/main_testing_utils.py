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

"""Shared fixtures for the puzzle function tests."""

import json
from functools import lru_cache
from unittest.mock import MagicMock

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from shared.config import Settings
from shared.puzzle import Puzzle, Question

TEST_PROJECT_ID = "linkloom-test"
TEST_CLIENT_EMAIL = "puzzles@linkloom-test.iam.gserviceaccount.com"


def create_mock_puzzle() -> Puzzle:
    return Puzzle(
        questions=[
            Question(
                t="What burns in a fireplace?",
                a="fire",
                h="It needs oxygen.",
            ),
            Question(
                t="What star is at the centre of our solar system?",
                a="sun",
                h="You see it every day.",
            ),
            Question(
                t="What orbits the Earth about once a month?",
                a="moon",
                h="It has phases.",
            ),
        ],
        link="light",
        link_hint="It travels faster than anything else.",
    )


def create_mock_puzzle_dict() -> dict:
    return {
        "questions": [
            {"t": q.t, "a": q.a, "h": q.h} for q in create_mock_puzzle().questions
        ],
        "link": "light",
        "link_hint": "It travels faster than anything else.",
    }


def create_mock_puzzle_json() -> str:
    return json.dumps(create_mock_puzzle_dict())


@lru_cache(maxsize=1)
def create_rsa_key_pair() -> tuple[str, str]:
    """Returns a (private PEM, public PEM) pair generated once per test run."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
    public_pem = (
        key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("utf-8")
    )
    return private_pem, public_pem


def create_mock_settings(**overrides) -> Settings:
    values = {
        "gemini_api_key": "test-gemini-key",
        "firebase_project_id": TEST_PROJECT_ID,
        "firebase_client_email": TEST_CLIENT_EMAIL,
        "firebase_private_key": create_rsa_key_pair()[0],
        "retry_max_attempts": 3,
        "retry_backoff_seconds": 0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def create_mock_response(status_code: int = 200, json_data=None, text=None):
    """Builds a stand-in for a requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    if json_data is not None:
        response.json.return_value = json_data
        response.text = json.dumps(json_data)
    else:
        response.json.side_effect = ValueError("No JSON")
        response.text = text or ""
    return response


def create_mock_gemini_client(text: str | None) -> MagicMock:
    """Builds a genai.Client stand-in whose generate_content returns `text`."""
    client = MagicMock()
    client.models.generate_content.return_value = MagicMock(text=text)
    return client
