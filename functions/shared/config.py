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
Environment-backed settings for the puzzle functions.

Only the function entrypoints read the environment; everything below them
receives a Settings instance explicitly.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.errors import ConfigurationError

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
DEFAULT_FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1"


@dataclass(frozen=True)
class ServiceAccount:
    """The service-account identity used to mint Firestore access tokens."""

    client_email: str
    private_key: str
    project_id: str


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Gemini
    gemini_api_key: Optional[str] = Field(default=None)
    gemini_model: str = Field(default=DEFAULT_GEMINI_MODEL)

    # Firebase service account
    firebase_project_id: Optional[str] = Field(default=None)
    firebase_client_email: Optional[str] = Field(default=None)
    firebase_private_key: Optional[str] = Field(default=None)

    # Endpoints
    oauth_token_uri: str = Field(default=DEFAULT_TOKEN_URI)
    firestore_base_url: str = Field(default=DEFAULT_FIRESTORE_BASE_URL)
    puzzles_collection: str = Field(default="puzzles")

    # Outbound HTTP
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    retry_max_attempts: int = Field(default=3, ge=1)
    retry_backoff_seconds: float = Field(default=1.0, ge=0)

    @field_validator("firebase_private_key")
    @classmethod
    def unescape_newlines(cls, value: Optional[str]) -> Optional[str]:
        # Hosting dashboards store the PEM on one line with literal "\\n".
        if value is None:
            return None
        return value.replace("\\n", "\n")

    def require_gemini_api_key(self) -> str:
        if not self.gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set.")
        return self.gemini_api_key

    def service_account(self) -> ServiceAccount:
        """
        Returns the configured service account.

        Raises:
            ConfigurationError: If any of the three credential values is unset.
        """
        missing = [
            name
            for name, value in (
                ("FIREBASE_PROJECT_ID", self.firebase_project_id),
                ("FIREBASE_CLIENT_EMAIL", self.firebase_client_email),
                ("FIREBASE_PRIVATE_KEY", self.firebase_private_key),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing service account settings: {missing}")
        return ServiceAccount(
            client_email=self.firebase_client_email,
            private_key=self.firebase_private_key,
            project_id=self.firebase_project_id,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
