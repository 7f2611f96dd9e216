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

import json
import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import main_testing_utils
from puzzles import handlers
from shared.errors import DataError, UpstreamError
from shared.puzzle import parse_puzzle
from store.firestore_rest import FirestoreRestPuzzleStore, InMemoryPuzzleStore

# 2024-04-10 is 100 days after the puzzle epoch.
DAY_100 = datetime(2024, 4, 10, 9, 30, tzinfo=timezone.utc)


class _FakeFirestore:
    """Serves Firestore REST calls from a dict keyed by document URL."""

    def __init__(self):
        self.documents = {}
        self.calls = []

    def __call__(self, method, url, headers=None, json=None, timeout=None):
        self.calls.append((method, url))
        if method == "PATCH":
            self.documents[url] = json
            return main_testing_utils.create_mock_response(200, json)
        if url in self.documents:
            return main_testing_utils.create_mock_response(200, self.documents[url])
        return main_testing_utils.create_mock_response(404, {"error": {"code": 404}})


@patch("puzzles.handlers.fetch_access_token", return_value="token")
@patch("puzzles.handlers.generate_puzzle")
class GenerateAndStorePuzzleTest(unittest.TestCase):

    def setUp(self):
        self.settings = main_testing_utils.create_mock_settings()
        self.store = InMemoryPuzzleStore()
        self.store_factory = MagicMock(return_value=self.store)

    def _run(self):
        return handlers.generate_and_store_puzzle(
            self.settings, now=DAY_100, store_factory=self.store_factory
        )

    def test_success(self, mock_generate, mock_token):
        mock_generate.return_value = main_testing_utils.create_mock_puzzle()

        result = self._run()

        self.assertEqual(result.status_code, 200)
        self.assertEqual(result.body, "Successfully generated and stored puzzle #100.")
        self.assertEqual(mock_generate.call_args.args[0], 100)
        account, token = self.store_factory.call_args.args
        self.assertEqual(token, "token")
        self.assertEqual(account.project_id, main_testing_utils.TEST_PROJECT_ID)
        self.assertEqual(
            parse_puzzle(self.store.read_puzzle_json(100)),
            main_testing_utils.create_mock_puzzle(),
        )

    def test_generation_failure_skips_auth_and_write(self, mock_generate, mock_token):
        mock_generate.side_effect = DataError("Gemini response has no text candidate.")

        result = self._run()

        self.assertEqual(result.status_code, 500)
        self.assertEqual(result.body, handlers.GENERATION_FAILED_MESSAGE)
        mock_token.assert_not_called()
        self.store_factory.assert_not_called()
        self.assertEqual(self.store.documents, {})

    def test_missing_gemini_key(self, mock_generate, mock_token):
        self.settings = main_testing_utils.create_mock_settings(gemini_api_key=None)

        result = self._run()

        self.assertEqual(result.status_code, 500)
        mock_generate.assert_not_called()
        self.store_factory.assert_not_called()

    def test_auth_failure_skips_write(self, mock_generate, mock_token):
        mock_generate.return_value = main_testing_utils.create_mock_puzzle()
        mock_token.side_effect = UpstreamError("Token exchange failed", status_code=401, body="no")

        result = self._run()

        self.assertEqual(result.status_code, 500)
        self.assertEqual(result.body, handlers.GENERATION_AUTH_FAILED_MESSAGE)
        self.store_factory.assert_not_called()

    def test_write_failure(self, mock_generate, mock_token):
        mock_generate.return_value = main_testing_utils.create_mock_puzzle()
        failing_store = MagicMock()
        failing_store.write_puzzle.side_effect = UpstreamError("Firestore PATCH failed", 500)
        self.store_factory.return_value = failing_store

        result = self._run()

        self.assertEqual(result.status_code, 500)
        self.assertEqual(result.body, handlers.WRITE_FAILED_MESSAGE)


@patch("puzzles.handlers.fetch_access_token", return_value="token")
class FetchDailyPuzzleTest(unittest.TestCase):

    def setUp(self):
        self.settings = main_testing_utils.create_mock_settings()
        self.store = InMemoryPuzzleStore()

    def _run(self):
        return handlers.fetch_daily_puzzle(
            self.settings, now=DAY_100, store_factory=lambda account, token: self.store
        )

    def test_returns_stored_json_verbatim(self, mock_token):
        self.store.write_puzzle(100, main_testing_utils.create_mock_puzzle())

        result = self._run()

        self.assertEqual(result.status_code, 200)
        self.assertEqual(result.body, self.store.read_puzzle_json(100))
        self.assertEqual(result.headers["Content-Type"], "application/json")

    def test_missing_puzzle_is_404(self, mock_token):
        self.store.write_puzzle(99, main_testing_utils.create_mock_puzzle())

        result = self._run()

        self.assertEqual(result.status_code, 404)
        self.assertEqual(json.loads(result.body), {"error": handlers.NOT_FOUND_MESSAGE})

    def test_auth_failure_skips_read(self, mock_token):
        mock_token.side_effect = UpstreamError("Token exchange failed", status_code=400, body="bad")
        read_store = MagicMock()

        result = handlers.fetch_daily_puzzle(
            self.settings, now=DAY_100, store_factory=lambda account, token: read_store
        )

        self.assertEqual(result.status_code, 500)
        self.assertIn("error", json.loads(result.body))
        read_store.read_puzzle_json.assert_not_called()

    def test_missing_credentials(self, mock_token):
        self.settings = main_testing_utils.create_mock_settings(firebase_private_key=None)

        result = self._run()

        self.assertEqual(result.status_code, 500)
        mock_token.assert_not_called()

    def test_store_error_is_404(self, mock_token):
        failing_store = MagicMock()
        failing_store.read_puzzle_json.side_effect = UpstreamError(
            "Firestore GET failed", status_code=403, body="PERMISSION_DENIED"
        )

        result = handlers.fetch_daily_puzzle(
            self.settings, now=DAY_100, store_factory=lambda account, token: failing_store
        )

        self.assertEqual(result.status_code, 404)
        self.assertEqual(json.loads(result.body), {"error": handlers.NOT_FOUND_MESSAGE})

    def test_document_without_data_is_404(self, mock_token):
        self.store.documents["100"] = {"fields": {"puzzleId": {"integerValue": "100"}}}

        result = self._run()

        self.assertEqual(result.status_code, 404)
        self.assertEqual(json.loads(result.body), {"error": handlers.NOT_FOUND_MESSAGE})


class FirestoreStoreFactoryTest(unittest.TestCase):

    def test_uses_service_account_project(self):
        settings = main_testing_utils.create_mock_settings(
            puzzles_collection="daily", retry_max_attempts=5
        )
        account = settings.service_account()

        store = handlers.firestore_store_factory(settings)(account, "token")

        self.assertIsInstance(store, FirestoreRestPuzzleStore)
        self.assertEqual(store.project_id, account.project_id)
        self.assertEqual(store.access_token, "token")
        self.assertEqual(store.collection, "daily")
        self.assertEqual(store.max_attempts, 5)
        self.assertTrue(
            store.document_url(100).endswith(
                f"projects/{main_testing_utils.TEST_PROJECT_ID}/databases/(default)/documents/daily/100"
            )
        )


class EndToEndTest(unittest.TestCase):
    """Runs both handlers against mocked Gemini, OAuth and Firestore HTTP."""

    @patch("store.firestore_rest.requests.request")
    @patch("auth.service_account.requests.post")
    @patch("models.gemini.genai.Client")
    def test_day_100(self, mock_client_class, mock_post, mock_request):
        gemini_client = main_testing_utils.create_mock_gemini_client(
            main_testing_utils.create_mock_puzzle_json()
        )
        mock_client_class.return_value = gemini_client
        mock_post.return_value = main_testing_utils.create_mock_response(
            200, {"access_token": "X"}
        )
        firestore = _FakeFirestore()
        mock_request.side_effect = firestore
        settings = main_testing_utils.create_mock_settings()

        generated = handlers.generate_and_store_puzzle(settings, now=DAY_100)
        fetched = handlers.fetch_daily_puzzle(settings, now=DAY_100)

        self.assertEqual(generated.status_code, 200)
        self.assertIn("#100", gemini_client.models.generate_content.call_args.kwargs["contents"])
        (write_method, write_url), (read_method, read_url) = firestore.calls
        self.assertEqual(write_method, "PATCH")
        self.assertTrue(write_url.endswith("/puzzles/100"))
        self.assertEqual(read_method, "GET")
        self.assertEqual(read_url, write_url)
        self.assertEqual(mock_request.call_args.kwargs["headers"], {"Authorization": "Bearer X"})

        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(
            fetched.body, firestore.documents[write_url]["fields"]["data"]["stringValue"]
        )
        self.assertEqual(json.loads(fetched.body), main_testing_utils.create_mock_puzzle_dict())

    @patch("store.firestore_rest.requests.request")
    @patch("auth.service_account.requests.post")
    @patch("models.gemini.genai.Client")
    def test_empty_gemini_text_writes_nothing(self, mock_client_class, mock_post, mock_request):
        mock_client_class.return_value = main_testing_utils.create_mock_gemini_client("")

        result = handlers.generate_and_store_puzzle(
            main_testing_utils.create_mock_settings(), now=DAY_100
        )

        self.assertEqual(result.status_code, 500)
        mock_post.assert_not_called()
        mock_request.assert_not_called()

    @patch("store.firestore_rest.requests.request")
    @patch("auth.service_account.requests.post")
    def test_retrieval_before_generation_is_404(self, mock_post, mock_request):
        mock_post.return_value = main_testing_utils.create_mock_response(
            200, {"access_token": "X"}
        )
        mock_request.side_effect = _FakeFirestore()

        result = handlers.fetch_daily_puzzle(
            main_testing_utils.create_mock_settings(), now=DAY_100
        )

        self.assertEqual(result.status_code, 404)
        self.assertEqual(mock_request.call_count, 1)


if __name__ == "__main__":
    unittest.main()
