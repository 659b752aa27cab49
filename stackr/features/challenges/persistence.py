"""
Challenge persistence.

The engine itself never stores anything; the service layer hands challenge
values to a repository. Two implementations share one contract:
- InMemoryChallengeRepository: default, process-local
- SqlChallengeRepository: SQLAlchemy Core, JSON payload per challenge
"""

import copy
import threading
from typing import Dict, List, Optional, Protocol

from sqlalchemy import delete, insert, select, update

from stackr.core.database import challenge_users, get_db_session, savings_challenges
from stackr.models.challenge import Challenge


class ChallengeRepository(Protocol):
    """Storage contract used by ChallengeService and LeaderboardService."""

    def save_user(self, user_id: str, name: str) -> None:
        ...

    def get_user_name(self, user_id: str) -> Optional[str]:
        ...

    def list_user_ids(self) -> List[str]:
        ...

    def save(self, challenge: Challenge) -> None:
        """Insert or replace a challenge value."""
        ...

    def get(self, challenge_id: str) -> Optional[Challenge]:
        ...

    def list_for_user(self, user_id: str) -> List[Challenge]:
        """A user's challenges, oldest first."""
        ...

    def clear(self) -> None:
        ...


class InMemoryChallengeRepository:
    """Process-local store. Values are copied in and out so callers never share state."""

    def __init__(self):
        self._challenges: Dict[str, Challenge] = {}
        self._users: Dict[str, str] = {}
        self._lock = threading.Lock()

    def save_user(self, user_id: str, name: str) -> None:
        with self._lock:
            self._users[user_id] = name

    def get_user_name(self, user_id: str) -> Optional[str]:
        return self._users.get(user_id)

    def list_user_ids(self) -> List[str]:
        with self._lock:
            known = set(self._users)
            known.update(c.user_id for c in self._challenges.values() if c.user_id)
        return sorted(known)

    def save(self, challenge: Challenge) -> None:
        with self._lock:
            self._challenges[challenge.id] = copy.deepcopy(challenge)

    def get(self, challenge_id: str) -> Optional[Challenge]:
        with self._lock:
            challenge = self._challenges.get(challenge_id)
            return copy.deepcopy(challenge) if challenge else None

    def list_for_user(self, user_id: str) -> List[Challenge]:
        with self._lock:
            owned = [c for c in self._challenges.values() if c.user_id == user_id]
            owned.sort(key=lambda c: (c.start_date, c.id))
            return [copy.deepcopy(c) for c in owned]

    def clear(self) -> None:
        with self._lock:
            self._challenges.clear()
            self._users.clear()


class SqlChallengeRepository:
    """
    SQL-backed store.

    Requires the tables from stackr.core.database (create_all_tables()).
    """

    def save_user(self, user_id: str, name: str) -> None:
        with get_db_session() as session:
            existing = session.execute(
                select(challenge_users.c.user_id).where(challenge_users.c.user_id == user_id)
            ).first()
            if existing:
                session.execute(
                    update(challenge_users).where(challenge_users.c.user_id == user_id).values(name=name)
                )
            else:
                session.execute(insert(challenge_users).values(user_id=user_id, name=name))

    def get_user_name(self, user_id: str) -> Optional[str]:
        with get_db_session() as session:
            row = session.execute(
                select(challenge_users.c.name).where(challenge_users.c.user_id == user_id)
            ).first()
        return row.name if row else None

    def list_user_ids(self) -> List[str]:
        with get_db_session() as session:
            registered = session.execute(select(challenge_users.c.user_id)).scalars().all()
            owners = session.execute(select(savings_challenges.c.user_id).distinct()).scalars().all()
        return sorted(set(registered) | set(owners))

    def save(self, challenge: Challenge) -> None:
        row = {
            "user_id": challenge.user_id or "",
            "status": challenge.status,
            "start_date": challenge.start_date,
            "payload": challenge.to_dict(),
        }
        with get_db_session() as session:
            existing = session.execute(
                select(savings_challenges.c.id).where(savings_challenges.c.id == challenge.id)
            ).first()
            if existing:
                session.execute(
                    update(savings_challenges).where(savings_challenges.c.id == challenge.id).values(**row)
                )
            else:
                session.execute(insert(savings_challenges).values(id=challenge.id, **row))

    def get(self, challenge_id: str) -> Optional[Challenge]:
        with get_db_session() as session:
            row = session.execute(
                select(savings_challenges.c.payload).where(savings_challenges.c.id == challenge_id)
            ).first()
        return Challenge.from_dict(row.payload) if row else None

    def list_for_user(self, user_id: str) -> List[Challenge]:
        with get_db_session() as session:
            rows = session.execute(
                select(savings_challenges.c.payload)
                .where(savings_challenges.c.user_id == user_id)
                .order_by(savings_challenges.c.start_date, savings_challenges.c.id)
            ).all()
        return [Challenge.from_dict(row.payload) for row in rows]

    def clear(self) -> None:
        with get_db_session() as session:
            session.execute(delete(savings_challenges))
            session.execute(delete(challenge_users))
