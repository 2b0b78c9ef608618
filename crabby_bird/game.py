"""Game loop, input handling and rendering composition for Crabby Bird."""

from __future__ import annotations

import argparse
import logging
import math
import random
import sys
from concurrent.futures import Executor, Future
from datetime import datetime

import pygame

from .client import LeaderboardView, ScoreClient, ScoreSubmitter
from .config import (
    COL_BG_BOTTOM,
    COL_BG_TOP,
    COL_PANEL,
    COL_SAND,
    COL_SEAWEED,
    COL_TEXT,
    COL_TEXT_DIM,
    DB_FILE,
    FPS,
    GAME_HEIGHT,
    GAME_WIDTH,
    NAME_MAX_LENGTH,
)
from .entities import Bubble
from .scores import AuthenticationError, ScoreError, ScoreRecord, ScoreService, ScoreStore
from .simulation import Phase, Simulation
from .utils import gradient_surface

logger = logging.getLogger(__name__)

JUMP_KEYS = (pygame.K_SPACE, pygame.K_UP)


def format_entry(rank: int, record: ScoreRecord) -> str:
    """One leaderboard row: rank, name, local submission date, score."""
    day = datetime.fromtimestamp(record.created_at / 1000).strftime("%Y-%m-%d")
    return f"{rank:>2}. {record.player_name:<20} {day} {record.score:>5}"


class Game:
    """Top-level game controller: owns the simulation, input, update, and draw."""

    def __init__(
        self,
        service: ScoreService | None = None,
        rng: random.Random | None = None,
        executor: Executor | None = None,
    ) -> None:
        pygame.init()
        self.screen = pygame.display.set_mode((GAME_WIDTH, GAME_HEIGHT))
        pygame.display.set_caption("Crabby Bird")
        self.clock = pygame.time.Clock()
        self.font_big = pygame.font.SysFont(None, 56)
        self.font_mid = pygame.font.SysFont(None, 32)
        self.font_small = pygame.font.SysFont(None, 22)

        self.service = service or ScoreService(ScoreStore(DB_FILE))
        self.client = ScoreClient(self.service, executor)
        self.submitter = ScoreSubmitter(self.client)
        self.leaderboard = LeaderboardView(self.client)
        self.show_leaderboard = False
        self.player_name = ""
        self._guest_sign_in: Future | None = None

        self.sim = Simulation(rng)
        self.bubbles = [Bubble(random.Random(i)) for i in range(20)]
        self.bg_gradient = gradient_surface(GAME_WIDTH, GAME_HEIGHT, COL_BG_TOP, COL_BG_BOTTOM)

        cx = GAME_WIDTH // 2
        self.submit_rect = pygame.Rect(cx - 90, GAME_HEIGHT // 2 + 60, 180, 34)
        self.play_again_rect = pygame.Rect(cx - 150, GAME_HEIGHT // 2 + 130, 140, 38)
        self.leaderboard_rect = pygame.Rect(cx + 10, GAME_HEIGHT // 2 + 130, 140, 38)

    # -- actions -------------------------------------------------------

    def jump(self) -> None:
        if self.sim.phase is Phase.IDLE:
            self.submitter.reset()
        self.sim.jump()

    def play_again(self) -> None:
        self.submitter.reset()
        self.sim.play_again()

    def return_to_menu(self) -> None:
        self.submitter.reset()
        self.sim.return_to_menu()

    def submit_score(self) -> None:
        if self.sim.phase is not Phase.GAME_OVER or self.sim.score <= 0:
            return
        self.submitter.submit(self.sim.score, self.player_name)

    def sign_in_as_guest(self) -> None:
        if self.service.is_authenticated or self._guest_sign_in is not None:
            return
        self._guest_sign_in = self.client.sign_in_anonymous()

    def _poll_guest_sign_in(self) -> None:
        if self._guest_sign_in is None or not self._guest_sign_in.done():
            return
        result = self._guest_sign_in.result()
        self._guest_sign_in = None
        # Clears the "sign in required" message on success
        self.submitter.last_error = result.error

    def open_leaderboard(self) -> None:
        self.show_leaderboard = True
        self.leaderboard.refresh()

    def close_leaderboard(self) -> None:
        self.show_leaderboard = False

    # -- input ---------------------------------------------------------

    def handle_input(self, event: pygame.event.Event) -> None:
        if self.show_leaderboard:
            if event.type == pygame.KEYDOWN and event.key in (pygame.K_ESCAPE, pygame.K_TAB):
                self.close_leaderboard()
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self.close_leaderboard()
            return

        if self.sim.phase is Phase.GAME_OVER:
            self._handle_game_over_input(event)
            return

        if event.type == pygame.KEYDOWN:
            if event.key in JUMP_KEYS:
                self.jump()
            elif event.key == pygame.K_TAB and self.sim.phase is Phase.IDLE:
                self.open_leaderboard()
            elif event.key == pygame.K_ESCAPE:
                pygame.event.post(pygame.event.Event(pygame.QUIT))
        elif event.type == pygame.MOUSEBUTTONDOWN:
            if event.button == 1:
                self.jump()

    def _handle_game_over_input(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN:
            if event.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
                self.submit_score()
            elif event.key == pygame.K_BACKSPACE:
                self.player_name = self.player_name[:-1]
            elif event.key == pygame.K_F5:
                self.play_again()
            elif event.key == pygame.K_ESCAPE:
                self.return_to_menu()
            elif event.key == pygame.K_TAB:
                self.open_leaderboard()
            elif event.key == pygame.K_F3:
                self.sign_in_as_guest()
            elif event.unicode and event.unicode.isprintable():
                if len(self.player_name) < NAME_MAX_LENGTH:
                    self.player_name += event.unicode
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self.play_again_rect.collidepoint(event.pos):
                self.play_again()
            elif self.leaderboard_rect.collidepoint(event.pos):
                self.open_leaderboard()
            elif self.submit_rect.collidepoint(event.pos):
                self.submit_score()

    # -- update --------------------------------------------------------

    def update(self) -> None:
        self._poll_guest_sign_in()
        self.submitter.poll()
        self.leaderboard.poll()
        for b in self.bubbles:
            b.update()
        # Exactly one simulation step per frame
        self.sim.step()

    # -- draw ----------------------------------------------------------

    def draw_background(self, surf: pygame.Surface) -> None:
        surf.blit(self.bg_gradient, (0, 0))
        t = pygame.time.get_ticks()
        for b in self.bubbles:
            b.draw(surf)
        # Seaweed
        for i in range(8):
            x = i * 55 + 20
            wave = math.sin(t / 500.0 + i) * 10
            tip_y = GAME_HEIGHT - 100 - (i % 3) * 20
            points = [
                (x + wave * s * s * 0.5, GAME_HEIGHT - (GAME_HEIGHT - tip_y) * s)
                for s in (0.0, 0.25, 0.5, 0.75, 1.0)
            ]
            pygame.draw.lines(surf, COL_SEAWEED, False, points, 8)
        # Sandy floor
        sand = pygame.Surface((GAME_WIDTH, 40), pygame.SRCALPHA)
        sand.fill((*COL_SAND, 60))
        surf.blit(sand, (0, GAME_HEIGHT - 40))

    def draw(self) -> None:
        self.draw_background(self.screen)
        for coral in self.sim.corals:
            coral.draw(self.screen)
        self.sim.crab.draw(self.screen, pygame.time.get_ticks())
        self._draw_ui(self.screen)
        pygame.display.flip()

    def _panel(self, surf: pygame.Surface) -> None:
        panel = pygame.Surface((GAME_WIDTH, GAME_HEIGHT), pygame.SRCALPHA)
        panel.fill(COL_PANEL)
        surf.blit(panel, (0, 0))

    def _text(self, surf: pygame.Surface, font: pygame.font.Font, text: str, center: tuple[int, int],
              color: tuple[int, int, int] = COL_TEXT) -> None:
        img = font.render(text, True, color)
        surf.blit(img, img.get_rect(center=center))

    def _button(self, surf: pygame.Surface, rect: pygame.Rect, label: str) -> None:
        pygame.draw.rect(surf, (255, 107, 74), rect, border_radius=10)
        self._text(surf, self.font_small, label, rect.center)

    def _draw_ui(self, surf: pygame.Surface) -> None:
        cx, cy = GAME_WIDTH // 2, GAME_HEIGHT // 2
        phase = self.sim.phase

        if phase is Phase.PLAYING:
            self._text(surf, self.font_big, str(self.sim.score), (cx, 60))
        elif phase is Phase.IDLE:
            self._panel(surf)
            self._text(surf, self.font_big, "Crabby Bird", (cx, cy - 60))
            self._text(surf, self.font_small, "Click or press SPACE to swim!", (cx, cy))
            self._text(surf, self.font_small, "Avoid the coral reefs", (cx, cy + 26), COL_TEXT_DIM)
            self._text(surf, self.font_small, "TAB: leaderboard  ESC: quit", (cx, cy + 70), COL_TEXT_DIM)
        else:
            self._draw_game_over(surf)

        if self.sim.high_score > 0 and phase is not Phase.GAME_OVER:
            self._text(surf, self.font_small, f"Best: {self.sim.high_score}", (cx, GAME_HEIGHT - 14), COL_TEXT_DIM)

        if self.show_leaderboard:
            self._draw_leaderboard(surf)

    def _draw_game_over(self, surf: pygame.Surface) -> None:
        cx, cy = GAME_WIDTH // 2, GAME_HEIGHT // 2
        self._panel(surf)
        self._text(surf, self.font_big, "Game Over!", (cx, cy - 110))
        self._text(surf, self.font_mid, f"Score {self.sim.score}", (cx, cy - 60))
        self._text(surf, self.font_small, f"Best: {self.sim.high_score}", (cx, cy - 32), COL_TEXT_DIM)

        if self.submitter.submitted:
            self._text(surf, self.font_mid, "Score shared!", (cx, cy + 20))
        elif self.sim.score > 0:
            name = self.player_name or "Type your name"
            name_rect = pygame.Rect(cx - 120, cy + 10, 240, 36)
            pygame.draw.rect(surf, (20, 40, 70), name_rect, border_radius=8)
            color = COL_TEXT if self.player_name else COL_TEXT_DIM
            self._text(surf, self.font_mid, name, name_rect.center, color)
            label = "Sharing..." if self.submitter.submitting else "Share Score (Enter)"
            self._button(surf, self.submit_rect, label)
            error = self.submitter.last_error
            if isinstance(error, AuthenticationError):
                self._text(surf, self.font_small, "Sign in required (F3: play as guest)", (cx, cy + 112), (255, 150, 150))
            elif error is not None:
                self._text(surf, self.font_small, str(error), (cx, cy + 112), (255, 150, 150))

        self._button(surf, self.play_again_rect, "Play Again (F5)")
        self._button(surf, self.leaderboard_rect, "Leaderboard (Tab)")
        self._text(surf, self.font_small, "ESC: menu", (cx, cy + 190), COL_TEXT_DIM)

    def _draw_leaderboard(self, surf: pygame.Surface) -> None:
        cx = GAME_WIDTH // 2
        self._panel(surf)
        self._text(surf, self.font_mid, "Ocean Champions", (cx, 40))
        y = 80
        best = self.leaderboard.user_best
        if best is not None:
            self._text(surf, self.font_small, f"Your Best: {best.score}", (cx, y), COL_TEXT_DIM)
            y += 30
        scores = self.leaderboard.scores
        if scores is None:
            self._text(surf, self.font_small, "Loading scores...", (cx, y + 20))
        elif not scores:
            self._text(surf, self.font_small, "No scores yet! Be the first to conquer the reef!", (cx, y + 20))
        else:
            for rank, record in enumerate(scores, start=1):
                img = self.font_small.render(format_entry(rank, record), True, COL_TEXT)
                surf.blit(img, (16, y))
                y += 26
        self._text(surf, self.font_small, "Click or ESC to go back", (cx, GAME_HEIGHT - 24), COL_TEXT_DIM)

    def shutdown(self) -> None:
        self.client.shutdown()
        self.service.store.close()
        pygame.quit()

    def run(self) -> None:
        while True:
            self.clock.tick(FPS)
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.shutdown()
                    sys.exit(0)
                self.handle_input(event)

            # Update scene
            self.update()
            self.draw()


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="crabby-bird", description="Swim through the coral reef!")
    parser.add_argument("--db", default=DB_FILE, help="SQLite file holding accounts and scores")
    parser.add_argument("--email", help="Sign in with this email")
    parser.add_argument("--password", help="Password for --email")
    parser.add_argument("--sign-up", action="store_true", help="Create the account instead of signing in")
    parser.add_argument("--guest", action="store_true", help="Continue as an anonymous guest")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser.parse_args(argv)


def authenticate(service: ScoreService, args: argparse.Namespace) -> None:
    """Open a session from the command line options, if any were given."""
    try:
        if args.guest:
            service.sign_in_anonymous()
        elif args.email:
            if args.sign_up:
                service.sign_up(args.email, args.password or "")
            else:
                service.sign_in(args.email, args.password or "")
    except ScoreError as e:
        # Reads still work; submitting will ask for a guest session
        logger.error("Sign in failed for %s: %s", args.email or "guest", e)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.debug)
    service = ScoreService(ScoreStore(args.db))
    authenticate(service, args)
    Game(service).run()
