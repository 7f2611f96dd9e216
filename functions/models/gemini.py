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

import logging
import time
from typing import Type

import httpx
from google import genai
from google.genai import errors, types
from pydantic import BaseModel

from shared.config import DEFAULT_GEMINI_MODEL
from shared.errors import DataError, UpstreamError

logger = logging.getLogger(__name__)

GENERATION_TEMPERATURE = 1.0


class GeminiInvalidResponseException(DataError):
    pass


def call_predict_with_schema(
    query: str,
    response_schema: Type[BaseModel],
    api_key: str,
    model: str = DEFAULT_GEMINI_MODEL,
    client: genai.Client | None = None,
) -> str:
    """
    Calls Gemini for JSON output constrained by `response_schema`.

    Returns the raw response text; parsing is left to the caller.

    Raises:
        UpstreamError: If the API answers with an error status or cannot be
            reached.
        GeminiInvalidResponseException: If the response carries no text.
    """
    if client is None:
        client = genai.Client(api_key=api_key)

    start_time = time.time()
    truncated_query = (query[:200] + "...") if len(query) > 200 else query
    logger.info("Calling %s with schema, prompt: '%s'", model, truncated_query)
    try:
        response = client.models.generate_content(
            model=model,
            contents=query,
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=response_schema,
                temperature=GENERATION_TEMPERATURE,
            ),
        )
    except errors.APIError as e:
        logger.error("Gemini call failed with status %s: %s", e.code, e.message)
        raise UpstreamError("Gemini call failed", status_code=e.code, body=e.message) from e
    except httpx.TransportError as e:
        raise UpstreamError(f"Gemini unreachable: {e}") from e

    logger.info("Gemini with schema call took: %.2fs", time.time() - start_time)
    if not response.text:
        raise GeminiInvalidResponseException("Gemini response has no text candidate.")
    return response.text
