from __future__ import annotations

"""Game configuration constants for Crabby Bird."""

import os

# Game configuration
GAME_WIDTH = 400
GAME_HEIGHT = 600
FPS = 60

# Physics (per frame; the simulation is frame-rate dependent)
GRAVITY = 0.5
JUMP_STRENGTH = -9.0

# Crab
CRAB_X = 80
CRAB_SIZE = 40
# Hit box is narrower than the drawn body
CRAB_BOX_LEFT = 60
CRAB_BOX_WIDTH = CRAB_SIZE - 10
CRAB_BOX_TOP_OFFSET = CRAB_SIZE / 2.5
CRAB_BOX_HEIGHT = CRAB_SIZE / 1.5

# Coral reefs (obstacles)
CORAL_WIDTH = 60
CORAL_GAP = 180
CORAL_SPEED = 3
SPAWN_INTERVAL = 200  # px between spawns
GAP_MARGIN = 150  # gap centre stays within [GAP_MARGIN, GAME_HEIGHT - GAP_MARGIN]

# Ceiling / sea floor
BOUNDS_MARGIN = 20

# Leaderboard
NAME_MAX_LENGTH = 20
DEFAULT_TOP_LIMIT = 10
LIST_LIMIT = 20
LEADERBOARD_LIMIT = 15
DB_FILE = os.environ.get("CRABBY_BIRD_DB", "crabby_bird.db")

# Palette (ocean)
COL_BG_TOP = (10, 22, 40)
COL_BG_BOTTOM = (26, 58, 92)
COL_SAND = (194, 178, 128)
COL_SEAWEED = (30, 86, 49)
COL_CORAL = (255, 107, 138)
COL_CORAL_LIGHT = (255, 143, 170)
COL_CORAL_DOT = (255, 77, 106)
COL_BUBBLE = (255, 255, 255)

CRAB_BODY = (255, 107, 74)
CRAB_SHELL = (232, 90, 58)
CRAB_CLAW = (255, 136, 102)
EYE_COLOR = (255, 255, 255)
PUPIL_COLOR = (26, 26, 46)

COL_TEXT = (240, 240, 245)
COL_TEXT_DIM = (180, 190, 210)
COL_PANEL = (8, 18, 34, 210)
