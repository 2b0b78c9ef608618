"""Game entities and rendering helpers.

Contains the player-controlled crab, the coral reef obstacles and the
decorative bubbles drifting through the background.
"""

from __future__ import annotations

import math
import random

import pygame

from .config import (
    COL_BUBBLE,
    COL_CORAL,
    COL_CORAL_DOT,
    COL_CORAL_LIGHT,
    CORAL_GAP,
    CORAL_SPEED,
    CORAL_WIDTH,
    CRAB_BODY,
    CRAB_BOX_HEIGHT,
    CRAB_BOX_LEFT,
    CRAB_BOX_TOP_OFFSET,
    CRAB_BOX_WIDTH,
    CRAB_CLAW,
    CRAB_SHELL,
    CRAB_SIZE,
    EYE_COLOR,
    GAME_HEIGHT,
    GAME_WIDTH,
    GRAVITY,
    JUMP_STRENGTH,
    PUPIL_COLOR,
)
from .utils import scale_color


class Crab:
    """The player: fixed horizontal position, vertical position and velocity."""

    def __init__(self, x: float, y: float) -> None:
        self.x = float(x)
        self.y = float(y)
        self.vy = 0.0

    def reset(self, x: float, y: float) -> None:
        self.x = float(x)
        self.y = float(y)
        self.vy = 0.0

    def jump(self) -> None:
        # Impulse replaces the current velocity
        self.vy = JUMP_STRENGTH

    def update(self) -> None:
        """Advance one frame: velocity first, then position."""
        self.vy += GRAVITY
        self.y += self.vy

    @property
    def hit_box(self) -> tuple[float, float, float, float]:
        """(left, top, width, height) of the collision box."""
        return (CRAB_BOX_LEFT, self.y - CRAB_BOX_TOP_OFFSET, CRAB_BOX_WIDTH, CRAB_BOX_HEIGHT)

    def draw(self, surf: pygame.Surface, time_ms: int = 0) -> None:
        x = int(self.x)
        bob = math.sin(time_ms / 150.0) * 3
        y = int(self.y + bob)
        half = CRAB_SIZE // 2

        # Legs
        for i in range(3):
            leg = math.sin(time_ms / 100.0 + i) * 3
            pygame.draw.line(surf, CRAB_BODY, (x - 15, y + 8), (x - 25 - i * 3, int(y + 18 + leg)), 3)
            pygame.draw.line(surf, CRAB_BODY, (x + 15, y + 8), (x + 25 + i * 3, int(y + 18 - leg)), 3)

        # Claws
        claw = math.sin(time_ms / 200.0) * 5
        pygame.draw.ellipse(surf, CRAB_CLAW, pygame.Rect(x - 40, int(y - 3 + claw), 24, 16))
        pygame.draw.ellipse(surf, CRAB_CLAW, pygame.Rect(x + 16, int(y - 3 - claw), 24, 16))

        # Body and shell
        body_h = int(CRAB_SIZE / 1.25)
        pygame.draw.ellipse(surf, CRAB_BODY, pygame.Rect(x - half, y - body_h // 2, CRAB_SIZE, body_h))
        pygame.draw.ellipse(surf, CRAB_SHELL, pygame.Rect(x - 13, y - 13, 26, 20))

        # Eyes
        for ex, px in ((-10, -8), (10, 12)):
            pygame.draw.circle(surf, EYE_COLOR, (x + ex, y - 12), 8)
            pygame.draw.circle(surf, PUPIL_COLOR, (x + px, y - 12), 4)


class Coral:
    """A pair of coral reefs with a passable gap centred on gap_y."""

    def __init__(self, x: float, gap_y: float) -> None:
        self.x = float(x)
        self.gap_y = float(gap_y)
        self.passed = False
        # Subtle per-coral colour variation, purely cosmetic
        tint = 0.92 + (int(gap_y) % 16) / 100.0
        self.col_base = scale_color(COL_CORAL, tint)
        self.col_light = scale_color(COL_CORAL_LIGHT, tint)

    @property
    def gap_top(self) -> float:
        return self.gap_y - CORAL_GAP / 2

    @property
    def gap_bottom(self) -> float:
        return self.gap_y + CORAL_GAP / 2

    @property
    def right(self) -> float:
        return self.x + CORAL_WIDTH

    @property
    def top_rect(self) -> pygame.Rect:
        return pygame.Rect(int(self.x), 0, CORAL_WIDTH, max(0, int(self.gap_top)))

    @property
    def bottom_rect(self) -> pygame.Rect:
        bottom_top = int(self.gap_bottom)
        return pygame.Rect(int(self.x), bottom_top, CORAL_WIDTH, max(0, GAME_HEIGHT - bottom_top))

    def update(self) -> None:
        self.x -= CORAL_SPEED

    def offscreen(self) -> bool:
        return self.right <= 0

    def draw(self, surf: pygame.Surface) -> None:
        top = self.top_rect
        bottom = self.bottom_rect
        pygame.draw.rect(surf, self.col_base, top, border_bottom_left_radius=15, border_bottom_right_radius=15)
        pygame.draw.rect(surf, self.col_base, bottom, border_top_left_radius=15, border_top_right_radius=15)
        # Lighter core stripe
        stripe_w = CORAL_WIDTH // 3
        pygame.draw.rect(surf, self.col_light, pygame.Rect(top.x + stripe_w, 0, stripe_w, max(0, top.height - 10)))
        pygame.draw.rect(surf, self.col_light, pygame.Rect(bottom.x + stripe_w, bottom.y + 10, stripe_w, bottom.height))
        # Polyp dots along the gap edges
        for i in range(3):
            bx = int(self.x) + 10 + i * 15
            pygame.draw.circle(surf, COL_CORAL_DOT, (bx, int(self.gap_top) - 10), 8)
            pygame.draw.circle(surf, COL_CORAL_DOT, (bx, int(self.gap_bottom) + 10), 8)


class Bubble:
    """Background bubble drifting upward; respawns at the sea floor."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()
        self.reset()
        self.y = self._rng.uniform(0, GAME_HEIGHT)

    def reset(self) -> None:
        self.x = self._rng.uniform(0, GAME_WIDTH)
        self.y = GAME_HEIGHT + self._rng.uniform(0, 40)
        self.vy = -self._rng.uniform(0.6, 1.6)
        self.radius = self._rng.choice((3, 5, 7, 9))
        self.alpha = self._rng.randint(25, 50)

    def update(self) -> None:
        self.y += self.vy
        self.x += math.sin(self.y / 40.0) * 0.3
        if self.y < -self.radius:
            self.reset()

    def draw(self, surf: pygame.Surface) -> None:
        size = self.radius * 2 + 2
        s = pygame.Surface((size, size), pygame.SRCALPHA)
        pygame.draw.circle(s, (*COL_BUBBLE, self.alpha), (size // 2, size // 2), self.radius)
        surf.blit(s, (int(self.x) - size // 2, int(self.y) - size // 2))
