import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

import requests
from sqlalchemy.exc import SQLAlchemyError

from timestables import db
from timestables.models import NAME_MAX_LENGTH, ScoreEntry
from timestables.services.quiz.levels import Difficulty

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10


class LeaderboardError(Exception):
    """Raised when scores cannot be written to or read from a store."""


@dataclass(frozen=True)
class LeaderboardEntry:
    name: str
    score: int
    difficulty: Difficulty
    timestamp: datetime

    @classmethod
    def from_row(cls, row: ScoreEntry) -> 'LeaderboardEntry':
        return cls(
            name=row.name,
            score=int(row.score),
            difficulty=Difficulty.parse(row.difficulty),
            timestamp=row.created_at,
        )

    @classmethod
    def from_dict(cls, data) -> 'LeaderboardEntry':
        raw_ts = data.get('timestamp')
        timestamp = datetime.fromisoformat(raw_ts) if raw_ts else datetime.now(timezone.utc)
        return cls(
            name=str(data['name']),
            score=int(data['score']),
            difficulty=Difficulty.parse(data['difficulty']),
            timestamp=timestamp,
        )

    def to_dict(self):
        return {
            'name': self.name,
            'score': self.score,
            'difficulty': self.difficulty.value,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
        }


def _validate(name, score):
    if not isinstance(name, str) or not name.strip():
        raise ValueError('name is required')
    name = name.strip()
    if len(name) > NAME_MAX_LENGTH:
        raise ValueError(f'name must be at most {NAME_MAX_LENGTH} characters')
    if isinstance(score, bool) or not isinstance(score, int) or score < 0:
        raise ValueError('score must be a non-negative integer')
    return name


class LeaderboardStore:
    """Ranked score storage, top entries per difficulty."""

    def save_score(self, name: str, score: int, difficulty) -> LeaderboardEntry:
        raise NotImplementedError

    def fetch_top(self, difficulty, limit: int = DEFAULT_LIMIT) -> List[LeaderboardEntry]:
        raise NotImplementedError


class LocalLeaderboardStore(LeaderboardStore):
    """Durable store in the app database, keeping the best ``retain`` rows per difficulty."""

    def __init__(self, retain: int = DEFAULT_LIMIT):
        self.retain = retain

    def save_score(self, name, score, difficulty):
        name = _validate(name, score)
        level = Difficulty.parse(difficulty)
        try:
            row = ScoreEntry(name=name, score=score, difficulty=level.value)
            db.session.add(row)
            db.session.commit()
            entry = LeaderboardEntry.from_row(row)
            self._prune(level)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise LeaderboardError(f"could not save score for {level.value}") from exc
        return entry

    def _prune(self, level: Difficulty) -> None:
        keep_ids = [
            row.id for row in self._ranked(level).limit(self.retain).all()
        ]
        (ScoreEntry.query
            .filter(ScoreEntry.difficulty == level.value, ScoreEntry.id.notin_(keep_ids))
            .delete(synchronize_session=False))
        db.session.commit()

    def _ranked(self, level: Difficulty):
        # Equal scores keep insertion order: the earlier entry ranks higher
        return (ScoreEntry.query
                .filter_by(difficulty=level.value)
                .order_by(ScoreEntry.score.desc(), ScoreEntry.id.asc()))

    def fetch_top(self, difficulty, limit=DEFAULT_LIMIT):
        level = Difficulty.parse(difficulty)
        limit = max(0, min(int(limit), self.retain))
        try:
            rows = self._ranked(level).limit(limit).all()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise LeaderboardError(f"could not read scores for {level.value}") from exc
        return [LeaderboardEntry.from_row(r) for r in rows]


class RemoteLeaderboardStore(LeaderboardStore):
    """Shared leaderboard service mirrored into the local store.

    Every save lands locally first; reads prefer the remote service and
    fall back to local data on any failure.
    """

    def __init__(self, local: LocalLeaderboardStore, base_url: str, timeout: float = 3.0,
                 session: Optional[requests.Session] = None):
        self.local = local
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def save_score(self, name, score, difficulty):
        name = _validate(name, score)
        level = Difficulty.parse(difficulty)
        local_error = None
        try:
            entry = self.local.save_score(name, score, level)
        except LeaderboardError as exc:
            logger.warning("[leaderboard-local] save failed: %s", exc)
            local_error = exc
            entry = LeaderboardEntry(name=name, score=score, difficulty=level,
                                     timestamp=datetime.now(timezone.utc))
        try:
            response = self.session.post(
                f"{self.base_url}/scores", json=entry.to_dict(), timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("[leaderboard-remote] save failed for %s: %s", level.value, exc)
            if local_error is not None:
                raise LeaderboardError('score was not stored anywhere') from local_error
        return entry

    def fetch_top(self, difficulty, limit=DEFAULT_LIMIT):
        level = Difficulty.parse(difficulty)
        try:
            response = self.session.get(
                f"{self.base_url}/scores",
                params={'difficulty': level.value, 'limit': limit},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
            if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
                raise ValueError('expected a list of score objects')
            entries = [LeaderboardEntry.from_dict(item) for item in payload]
        except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
            logger.warning("[leaderboard-fallback] remote fetch failed for %s: %s", level.value, exc)
            return self.local.fetch_top(level, limit)
        entries = [e for e in entries if e.difficulty == level]
        entries.sort(key=lambda e: e.score, reverse=True)
        return entries[:limit]


def build_leaderboard_store(app) -> LeaderboardStore:
    """Pick the store implementation once, at startup."""
    local = LocalLeaderboardStore(retain=int(app.config.get('LEADERBOARD_SIZE', DEFAULT_LIMIT)))
    url = app.config.get('REMOTE_LEADERBOARD_URL')
    if not url:
        app.logger.info("[leaderboard] using local store")
        return local
    timeout = float(app.config.get('REMOTE_LEADERBOARD_TIMEOUT_SEC', 3))
    app.logger.info(f"[leaderboard] using remote store {url} timeout={timeout}s")
    return RemoteLeaderboardStore(local, url, timeout=timeout)
