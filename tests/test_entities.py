import random

import pygame
import pytest

from crabby_bird.config import (
    CORAL_GAP,
    CORAL_SPEED,
    CORAL_WIDTH,
    CRAB_BOX_HEIGHT,
    CRAB_BOX_LEFT,
    CRAB_BOX_WIDTH,
    CRAB_X,
    GAME_HEIGHT,
    GAME_WIDTH,
    GRAVITY,
    JUMP_STRENGTH,
)
from crabby_bird.entities import Bubble, Coral, Crab


def setup_module(module: object) -> None:
    pygame.init()


def teardown_module(module: object) -> None:
    pygame.quit()


def test_crab_gravity_accumulates() -> None:
    crab = Crab(CRAB_X, 300)
    velocities = []
    for _ in range(5):
        crab.update()
        velocities.append(crab.vy)
    assert velocities == pytest.approx([GRAVITY * (i + 1) for i in range(5)])
    # semi-implicit Euler: position uses the updated velocity
    assert crab.y == pytest.approx(300 + GRAVITY * (1 + 2 + 3 + 4 + 5))


@pytest.mark.parametrize("vy", [-20.0, 0.0, 3.5, 42.0])
def test_crab_jump_overrides_velocity(vy: float) -> None:
    crab = Crab(CRAB_X, 300)
    crab.vy = vy
    crab.jump()
    assert crab.vy == JUMP_STRENGTH


def test_crab_reset_and_hit_box() -> None:
    crab = Crab(CRAB_X, 100)
    crab.vy = 7.0
    crab.reset(CRAB_X, GAME_HEIGHT / 2)
    assert crab.vy == 0.0
    left, top, width, height = crab.hit_box
    assert left == CRAB_BOX_LEFT
    assert width == CRAB_BOX_WIDTH
    assert height == pytest.approx(CRAB_BOX_HEIGHT)
    assert top < crab.y < top + height


def test_coral_gap_and_scroll() -> None:
    coral = Coral(GAME_WIDTH, 300)
    assert coral.gap_bottom - coral.gap_top == CORAL_GAP
    assert coral.top_rect.height == int(coral.gap_top)
    assert coral.bottom_rect.bottom == GAME_HEIGHT
    coral.update()
    assert coral.x == GAME_WIDTH - CORAL_SPEED
    assert coral.passed is False


def test_coral_offscreen_when_right_edge_leaves() -> None:
    coral = Coral(-CORAL_WIDTH + 1, 300)
    assert coral.offscreen() is False
    coral.x = -CORAL_WIDTH
    assert coral.offscreen() is True


def test_bubble_respawns_at_floor() -> None:
    bubble = Bubble(random.Random(3))
    bubble.y = -bubble.radius - 1
    bubble.update()
    assert bubble.y >= GAME_HEIGHT


def test_entities_draw() -> None:
    surf = pygame.Surface((GAME_WIDTH, GAME_HEIGHT))
    Crab(CRAB_X, 300).draw(surf, 1234)
    Coral(200, 300).draw(surf)
    Bubble(random.Random(1)).draw(surf)
