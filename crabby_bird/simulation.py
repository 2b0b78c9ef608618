"""Deterministic per-frame simulation and run state machine for Crabby Bird.

One call to :meth:`Simulation.step` advances the world by exactly one display
frame. Nothing here touches the display, so the loop can be driven by any
fixed-tick scheduler (the pygame clock in :mod:`crabby_bird.game`, or a test).
"""

from __future__ import annotations

import enum
import logging
import random

from .config import (
    BOUNDS_MARGIN,
    CRAB_X,
    GAME_HEIGHT,
    GAME_WIDTH,
    GAP_MARGIN,
    SPAWN_INTERVAL,
)
from .entities import Coral, Crab
from .utils import band_contains, random_gap_center, spans_overlap

logger = logging.getLogger(__name__)


class Phase(enum.Enum):
    IDLE = "idle"
    PLAYING = "playing"
    GAME_OVER = "gameover"


class Simulation:
    """Owns the crab, the coral list, the score and the run phase."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()
        self.crab = Crab(CRAB_X, GAME_HEIGHT / 2)
        self.corals: list[Coral] = []
        self.score = 0
        self.high_score = 0
        self.phase = Phase.IDLE
        self.ticks = 0

    def reset(self) -> None:
        self.crab.reset(CRAB_X, GAME_HEIGHT / 2)
        self.corals = []
        self.score = 0
        self.ticks = 0

    # -- state machine -------------------------------------------------

    def jump(self) -> None:
        """Handle one jump input event."""
        if self.phase is Phase.IDLE:
            self.reset()
            self.phase = Phase.PLAYING
            logger.debug("Run started")
            self.crab.jump()
        elif self.phase is Phase.PLAYING:
            self.crab.jump()
        # Jumps after game over are ignored until an explicit reset

    def return_to_menu(self) -> None:
        if self.phase is not Phase.GAME_OVER:
            return
        self.reset()
        self.phase = Phase.IDLE

    def play_again(self) -> None:
        """Reset to idle and start the next run straight away."""
        if self.phase is not Phase.GAME_OVER:
            return
        self.return_to_menu()
        self.jump()

    # -- simulation ----------------------------------------------------

    def spawn_coral(self) -> Coral:
        coral = Coral(GAME_WIDTH, random_gap_center(self.rng, GAME_HEIGHT, GAP_MARGIN))
        self.corals.append(coral)
        return coral

    def step(self) -> bool:
        """Advance one frame. Returns True if the crab collided this frame."""
        if self.phase is not Phase.PLAYING:
            return False
        self.ticks += 1

        self.crab.update()

        if not self.corals or self.corals[-1].x < GAME_WIDTH - SPAWN_INTERVAL:
            self.spawn_coral()

        for coral in self.corals:
            coral.update()
        self.corals = [c for c in self.corals if not c.offscreen()]

        # Scoring runs before the collision test on the same positions, so a
        # frame can both score a pass and end the run.
        for coral in self.corals:
            if not coral.passed and coral.right < CRAB_X:
                coral.passed = True
                self.score += 1

        if self.collides():
            self._end_run()
            return True
        return False

    def out_of_bounds(self) -> bool:
        y = self.crab.y
        return y <= BOUNDS_MARGIN or y >= GAME_HEIGHT - BOUNDS_MARGIN

    def collides(self) -> bool:
        if self.out_of_bounds():
            return True
        left, top, width, height = self.crab.hit_box
        for coral in self.corals:
            if not spans_overlap(left, width, coral.x, coral.right - coral.x):
                continue
            if not band_contains(top, height, coral.gap_top, coral.gap_bottom):
                return True
        return False

    def _end_run(self) -> None:
        self.phase = Phase.GAME_OVER
        if self.score > self.high_score:
            self.high_score = self.score
        logger.info("Run over after %d frames: score=%d best=%d", self.ticks, self.score, self.high_score)
