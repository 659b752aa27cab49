"""
stackr/tests/test_challenge_persistence.py

Tests for the SQL-backed challenge repository on in-memory SQLite.

Covers:
- Challenge save and retrieval (full payload)
- Update in place
- Per-user ordering
- User registry and listing
- Service round trip over SQL storage
"""

import random
from datetime import datetime, timedelta, timezone

import pytest

from stackr.features.challenges.generator import ChallengeGenerator, GenerationOptions
from stackr.features.challenges.persistence import SqlChallengeRepository
from stackr.features.challenges.progress import ProgressTracker
from stackr.features.challenges.service import ChallengeService
from stackr.models.challenge import Contribution

START = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def repo(sqlite_db):
    repository = SqlChallengeRepository()
    repository.clear()
    yield repository
    repository.clear()


def _generator():
    counter = iter(range(100))
    return ChallengeGenerator(rng=random.Random(5), id_factory=lambda: f"sql-{next(counter)}")


def test_save_and_get_round_trip(repo):
    challenge = _generator().generate(GenerationOptions(type="daily", target_amount=12, user_id="u1"), now=START)
    challenge = ProgressTracker.apply_contribution(
        challenge, Contribution(amount=4, date=START + timedelta(hours=2), note="first")
    )
    repo.save(challenge)

    loaded = repo.get(challenge.id)
    assert loaded == challenge
    assert loaded.contributions[0].note == "first"
    assert loaded.start_date.tzinfo is not None


def test_get_missing_returns_none(repo):
    assert repo.get("missing") is None


def test_save_updates_existing_row(repo):
    challenge = _generator().generate(GenerationOptions(target_amount=5, user_id="u1"), now=START)
    repo.save(challenge)
    updated = ProgressTracker.apply_contribution(challenge, Contribution(amount=5, date=START))
    repo.save(updated)

    loaded = repo.get(challenge.id)
    assert loaded.status == "completed"
    assert loaded.progress == 100
    assert len(repo.list_for_user("u1")) == 1


def test_list_for_user_is_oldest_first(repo):
    generator = _generator()
    later = generator.generate(GenerationOptions(user_id="u1"), now=START + timedelta(days=3))
    earlier = generator.generate(GenerationOptions(user_id="u1"), now=START)
    other = generator.generate(GenerationOptions(user_id="u2"), now=START)
    for challenge in (later, earlier, other):
        repo.save(challenge)

    assert [c.id for c in repo.list_for_user("u1")] == [earlier.id, later.id]


def test_user_registry(repo):
    repo.save_user("u1", "Uma")
    repo.save_user("u1", "Uma B")
    challenge = _generator().generate(GenerationOptions(user_id="u9"), now=START)
    repo.save(challenge)

    assert repo.get_user_name("u1") == "Uma B"
    assert repo.get_user_name("ghost") is None
    assert repo.list_user_ids() == ["u1", "u9"]


def test_service_over_sql_storage(repo):
    service = ChallengeService(repo, rng=random.Random(2))
    challenge, _ = service.create_challenge(
        user_id="u1", options=GenerationOptions(type="weekly", target_amount=100), now=START
    )
    service.contribute(user_id="u1", challenge_id=challenge.id, amount=100, contributed_at=START)

    stats = service.get_statistics("u1")
    assert stats.total_completed == 1
    assert stats.total_saved == 100


def test_clear_removes_everything(repo):
    repo.save_user("u1", "Uma")
    repo.save(_generator().generate(GenerationOptions(user_id="u1"), now=START))
    repo.clear()

    assert repo.list_user_ids() == []
    assert repo.list_for_user("u1") == []
