import os
from concurrent.futures import Executor, Future

os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import pytest

from crabby_bird.scores import ScoreService, ScoreStore


class ImmediateExecutor(Executor):
    """Runs submitted calls inline so futures are already done."""

    def submit(self, fn, *args, **kwargs) -> Future:
        future: Future = Future()
        future.set_result(fn(*args, **kwargs))
        return future


@pytest.fixture
def service() -> ScoreService:
    svc = ScoreService(ScoreStore(":memory:"))
    yield svc
    svc.store.close()


@pytest.fixture
def executor() -> ImmediateExecutor:
    return ImmediateExecutor()
