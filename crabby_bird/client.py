"""Non-blocking access to the score collaborator from the game loop.

Collaborator calls run on a small thread pool and come back as
``Future[Result]``. The render loop polls them once per frame and never
waits on the network.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, Optional

from .config import LEADERBOARD_LIMIT, NAME_MAX_LENGTH
from .scores import (
    Result,
    ScoreError,
    ScoreRecord,
    ScoreService,
    TransientNetworkError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class ScoreClient:
    """Runs ScoreService operations off the render thread."""

    def __init__(self, service: ScoreService, executor: Executor | None = None) -> None:
        self.service = service
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="scores")

    def _run(self, name: str, fn: Callable, *args) -> Future:
        def call() -> Result:
            try:
                return Result.success(fn(*args))
            except ScoreError as e:
                logger.warning("%s failed: %s", name, e)
                return Result.failure(e)
            except Exception as e:
                logger.exception("%s failed unexpectedly", name)
                return Result.failure(TransientNetworkError(str(e)))

        return self._executor.submit(call)

    def submit(self, score: int, player_name: str) -> Future:
        return self._run("submit", self.service.submit, score, player_name)

    def top_scores(self, limit: int) -> Future:
        return self._run("top_scores", self.service.top_scores, limit)

    def user_best(self) -> Future:
        return self._run("user_best", self.service.user_best)

    def sign_in_anonymous(self) -> Future:
        return self._run("sign_in_anonymous", self.service.sign_in_anonymous)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)


def clean_player_name(name: str) -> str:
    """Trim and cap a display name; empty names are rejected."""
    name = name.strip()[:NAME_MAX_LENGTH]
    if not name:
        raise ValidationError("Player name must not be empty")
    return name


class ScoreSubmitter:
    """One-shot submission latch for a finished run."""

    def __init__(self, client: ScoreClient) -> None:
        self.client = client
        self.submitted = False
        self.last_error: Optional[ScoreError] = None
        self._pending: Optional[Future] = None

    @property
    def submitting(self) -> bool:
        return self._pending is not None

    def reset(self) -> None:
        self.submitted = False
        self.last_error = None
        self._pending = None

    def submit(self, score: int, player_name: str) -> bool:
        """Start a submission. Returns False if nothing was sent."""
        if self.submitted or self.submitting:
            return False
        try:
            name = clean_player_name(player_name)
        except ValidationError as e:
            self.last_error = e
            return False
        self.last_error = None
        self._pending = self.client.submit(score, name)
        return True

    def poll(self) -> None:
        """Resolve the in-flight submission if it has finished."""
        if self._pending is None or not self._pending.done():
            return
        result: Result = self._pending.result()
        self._pending = None
        if result.ok:
            self.submitted = True
        else:
            # Latch stays open so the player can retry
            self.last_error = result.error


class LeaderboardView:
    """Top scores plus the caller's personal best, fetched asynchronously."""

    def __init__(self, client: ScoreClient, limit: int = LEADERBOARD_LIMIT) -> None:
        self.client = client
        self.limit = limit
        self.scores: Optional[list[ScoreRecord]] = None
        self.user_best: Optional[ScoreRecord] = None
        self._scores_future: Optional[Future] = None
        self._best_future: Optional[Future] = None

    @property
    def loading(self) -> bool:
        return self.scores is None

    def refresh(self) -> None:
        self.scores = None
        self.user_best = None
        self._scores_future = self.client.top_scores(self.limit)
        self._best_future = self.client.user_best()

    def poll(self) -> None:
        if self._scores_future is not None and self._scores_future.done():
            result: Result = self._scores_future.result()
            self._scores_future = None
            if result.ok:
                self.scores = result.value
            # On failure the view keeps showing the loading state
        if self._best_future is not None and self._best_future.done():
            result = self._best_future.result()
            self._best_future = None
            if result.ok:
                self.user_best = result.value
