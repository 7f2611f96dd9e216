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
Service-account authentication against Google's OAuth 2.0 token endpoint.

Implements the JWT-bearer grant: a claim set signed with the service
account's private key is exchanged for a short-lived access token. Tokens
are minted fresh for every invocation.
"""

import logging
import time
from typing import Any, Dict

import jwt
import requests

from shared.config import DEFAULT_TOKEN_URI, ServiceAccount
from shared.errors import ConfigurationError, DataError, UpstreamError

logger = logging.getLogger(__name__)

DATASTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
JWT_BEARER_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"
ASSERTION_LIFETIME_SECONDS = 3600
SIGNING_ALGORITHM = "RS256"
REQUEST_TIMEOUT = 30  # seconds

PEM_HEADER = "-----BEGIN"


def build_claims(
    account: ServiceAccount,
    scope: str = DATASTORE_SCOPE,
    token_uri: str = DEFAULT_TOKEN_URI,
    now: float | None = None,
) -> Dict[str, Any]:
    """Builds the one-hour claim set for the JWT-bearer assertion."""
    issued_at = int(time.time() if now is None else now)
    return {
        "iss": account.client_email,
        "sub": account.client_email,
        "aud": token_uri,
        "iat": issued_at,
        "exp": issued_at + ASSERTION_LIFETIME_SECONDS,
        "scope": scope,
    }


def sign_assertion(claims: Dict[str, Any], private_key: str) -> str:
    """
    Signs `claims` with `private_key` into a compact RS256 JWT.

    Raises:
        ConfigurationError: If the key is missing, is not PEM encoded, or
            cannot be used for RS256 signing.
    """
    if not private_key or PEM_HEADER not in private_key:
        raise ConfigurationError("Service account private key is missing or not PEM.")
    try:
        return jwt.encode(claims, private_key, algorithm=SIGNING_ALGORITHM)
    except (ValueError, TypeError, jwt.PyJWTError) as e:
        raise ConfigurationError(f"Could not sign with the private key: {e}") from e


def exchange_assertion(
    assertion: str,
    token_uri: str = DEFAULT_TOKEN_URI,
    timeout: float = REQUEST_TIMEOUT,
) -> str:
    """
    Exchanges a signed assertion for a bearer access token.

    Raises:
        UpstreamError: On a connection failure or a non-success status.
        DataError: If the response has no usable access_token.
    """
    try:
        response = requests.post(
            token_uri,
            data={"grant_type": JWT_BEARER_GRANT_TYPE, "assertion": assertion},
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise UpstreamError(f"Token endpoint unreachable: {e}") from e

    if not response.ok:
        logger.error(
            "Token exchange failed with status %s: %s",
            response.status_code,
            response.text,
        )
        raise UpstreamError(
            "Token exchange failed", status_code=response.status_code, body=response.text
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise DataError(f"Token endpoint returned non-JSON body: {e}") from e

    access_token = payload.get("access_token") if isinstance(payload, dict) else None
    if not isinstance(access_token, str) or not access_token:
        raise DataError("Token endpoint response has no access_token.")
    return access_token


def fetch_access_token(
    account: ServiceAccount,
    scope: str = DATASTORE_SCOPE,
    token_uri: str = DEFAULT_TOKEN_URI,
    now: float | None = None,
    timeout: float = REQUEST_TIMEOUT,
) -> str:
    """
    Returns a bearer token for `account` with the requested `scope`.

    Args:
        account (ServiceAccount): The credential to authenticate as.
        scope (str): The OAuth scope to request.
        token_uri (str): The token endpoint, also used as the JWT audience.
        now (float | None): Issue time as a POSIX timestamp, for tests.
        timeout (float): Seconds to wait for the token endpoint.

    Returns:
        str: The access token, exactly as returned by the endpoint.
    """
    claims = build_claims(account, scope=scope, token_uri=token_uri, now=now)
    assertion = sign_assertion(claims, account.private_key)
    access_token = exchange_assertion(assertion, token_uri=token_uri, timeout=timeout)
    logger.info("Obtained access token for %s", account.client_email)
    return access_token
