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

"""Derives the daily puzzle ID from the wall clock."""

from datetime import date, datetime, timedelta, timezone

PUZZLE_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)
ONE_DAY = timedelta(days=1)


def _as_utc(now: datetime) -> datetime:
    # Naive datetimes are taken to already be UTC.
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def puzzle_id_for(now: datetime | None = None) -> int:
    """
    Returns the number of whole UTC days between the puzzle epoch and `now`.

    Args:
        now (datetime | None): The instant to derive the ID for. Defaults to
            the current time.

    Returns:
        int: The puzzle ID. Every instant within one UTC day maps to the same ID.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    return (_as_utc(now) - PUZZLE_EPOCH) // ONE_DAY


def puzzle_date(puzzle_id: int) -> date:
    """Returns the UTC calendar day that `puzzle_id` belongs to."""
    return (PUZZLE_EPOCH + puzzle_id * ONE_DAY).date()
