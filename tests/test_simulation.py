import random

import pytest

from crabby_bird.config import (
    BOUNDS_MARGIN,
    CORAL_WIDTH,
    CRAB_X,
    GAME_HEIGHT,
    GAME_WIDTH,
    GAP_MARGIN,
    GRAVITY,
    JUMP_STRENGTH,
)
from crabby_bird.entities import Coral
from crabby_bird.simulation import Phase, Simulation

MIDLINE = GAME_HEIGHT / 2


class MidlineRandom(random.Random):
    """Every gap is centred on the midline."""

    def random(self) -> float:
        return 0.5


def playing_sim(rng: random.Random | None = None) -> Simulation:
    sim = Simulation(rng or random.Random(1))
    sim.reset()
    sim.phase = Phase.PLAYING
    return sim


def test_starts_idle_and_step_is_noop() -> None:
    sim = Simulation(random.Random(0))
    assert sim.phase is Phase.IDLE
    assert sim.step() is False
    assert sim.ticks == 0
    assert sim.corals == []


def test_one_tick_from_midline() -> None:
    sim = playing_sim()
    collided = sim.step()
    assert collided is False
    assert sim.crab.vy == GRAVITY
    assert sim.crab.y == MIDLINE + GRAVITY
    assert sim.phase is Phase.PLAYING


def test_velocity_grows_by_gravity_each_tick() -> None:
    sim = Simulation(random.Random(2))
    sim.jump()
    assert sim.crab.vy == JUMP_STRENGTH
    previous = sim.crab.vy
    for _ in range(10):
        assert sim.step() is False
        assert sim.crab.vy - previous == pytest.approx(GRAVITY)
        previous = sim.crab.vy


def test_jump_while_playing_sets_impulse() -> None:
    sim = playing_sim()
    sim.crab.vy = 6.0
    sim.jump()
    assert sim.crab.vy == JUMP_STRENGTH
    assert sim.phase is Phase.PLAYING


def test_first_tick_spawns_at_right_edge() -> None:
    sim = playing_sim()
    sim.step()
    assert len(sim.corals) == 1
    assert sim.corals[0].x == GAME_WIDTH - 3


def test_spawned_gap_centres_stay_in_bounds() -> None:
    sim = Simulation(random.Random(99))
    for _ in range(10_000):
        coral = sim.spawn_coral()
        assert GAP_MARGIN <= coral.gap_y <= GAME_HEIGHT - GAP_MARGIN


def test_coral_crossing_threshold_scores_once() -> None:
    sim = playing_sim(MidlineRandom())
    coral = Coral(CRAB_X - CORAL_WIDTH, MIDLINE)
    sim.corals = [coral]
    assert sim.step() is False
    assert sim.score == 1
    assert coral.passed is True
    # already passed: another tick leaves the score alone
    sim.step()
    assert sim.score == 1


def test_score_matches_corals_passed() -> None:
    sim = playing_sim(MidlineRandom())
    seen: dict[int, Coral] = {}
    for _ in range(600):
        # hold the crab on the midline
        sim.crab.y = MIDLINE
        sim.crab.vy = -GRAVITY
        assert sim.step() is False
        for coral in sim.corals:
            seen[id(coral)] = coral
    passed = sum(1 for c in seen.values() if c.passed)
    assert passed >= 5
    assert sim.score == passed


def test_corals_ordered_and_retired() -> None:
    sim = playing_sim(MidlineRandom())
    for _ in range(300):
        sim.crab.y = MIDLINE
        sim.crab.vy = -GRAVITY
        sim.step()
        xs = [c.x for c in sim.corals]
        assert xs == sorted(xs)
        assert all(c.x + CORAL_WIDTH > 0 for c in sim.corals)


@pytest.mark.parametrize("y", [0.0, 5.0, BOUNDS_MARGIN - 1.0, GAME_HEIGHT - BOUNDS_MARGIN + 1.0, GAME_HEIGHT + 50.0])
def test_boundary_collision_ends_run(y: float) -> None:
    sim = playing_sim()
    sim.crab.y = y
    sim.crab.vy = 0.0
    assert sim.step() is True
    assert sim.phase is Phase.GAME_OVER


def test_coral_collision_updates_high_score() -> None:
    sim = playing_sim()
    sim.high_score = 2
    sim.score = 3
    # gap far above the crab
    sim.corals = [Coral(50, 100)]
    assert sim.step() is True
    assert sim.phase is Phase.GAME_OVER
    assert sim.high_score == 3


def test_high_score_not_lowered() -> None:
    sim = playing_sim()
    sim.high_score = 10
    sim.crab.y = 0.0
    sim.step()
    assert sim.high_score == 10


def test_pass_and_collide_in_same_tick() -> None:
    sim = playing_sim()
    sim.corals = [Coral(CRAB_X - CORAL_WIDTH, 100)]
    assert sim.step() is True
    assert sim.score == 1
    assert sim.high_score == 1
    assert sim.phase is Phase.GAME_OVER


def test_inputs_ignored_after_game_over() -> None:
    sim = playing_sim()
    sim.crab.y = 0.0
    sim.step()
    vy = sim.crab.vy
    sim.jump()
    assert sim.phase is Phase.GAME_OVER
    assert sim.crab.vy == vy
    assert sim.step() is False


@pytest.mark.parametrize("final_y", [0.0, GAME_HEIGHT])
def test_idle_to_playing_resets_state(final_y: float) -> None:
    sim = playing_sim(random.Random(5))
    for _ in range(30):
        sim.step()
    sim.score = 4
    sim.crab.y = final_y
    sim.step()
    assert sim.phase is Phase.GAME_OVER

    sim.return_to_menu()
    assert sim.phase is Phase.IDLE
    assert sim.score == 0
    assert sim.crab.vy == 0.0
    assert sim.crab.y == MIDLINE
    assert sim.corals == []

    sim.jump()
    assert sim.phase is Phase.PLAYING
    assert sim.score == 0
    assert sim.crab.y == MIDLINE
    assert sim.crab.vy == JUMP_STRENGTH
    assert sim.high_score == 4


def test_play_again_starts_next_run() -> None:
    sim = playing_sim()
    sim.score = 2
    sim.crab.y = 0.0
    sim.step()
    sim.play_again()
    assert sim.phase is Phase.PLAYING
    assert sim.score == 0
    assert sim.crab.vy == JUMP_STRENGTH


def test_menu_and_play_again_only_from_game_over() -> None:
    sim = playing_sim()
    sim.return_to_menu()
    assert sim.phase is Phase.PLAYING
    sim.play_again()
    assert sim.phase is Phase.PLAYING


@pytest.mark.parametrize("y", [BOUNDS_MARGIN, GAME_HEIGHT - BOUNDS_MARGIN])
def test_landing_exactly_on_boundary_collides(y: float) -> None:
    sim = playing_sim()
    # gravity moves the crab by exactly GRAVITY this tick
    sim.crab.y = y - GRAVITY
    sim.crab.vy = 0.0
    assert sim.step() is True
    assert sim.crab.y == y
    assert sim.phase is Phase.GAME_OVER


def test_just_inside_boundary_is_safe() -> None:
    sim = playing_sim()
    sim.crab.y = BOUNDS_MARGIN + 1.0 - GRAVITY
    sim.crab.vy = 0.0
    assert sim.step() is False
    assert sim.phase is Phase.PLAYING
