"""Crabby Bird: a Flappy-Bird style arcade game with a global leaderboard."""

__version__ = "0.1.0"
