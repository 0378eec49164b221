"""
runner_client.py

Pygame front end: drives the engine once per frame, draws it, and pushes
finished runs to the score client on a background thread.
"""

import logging
import threading
from typing import List, Optional

import pygame

from .constants import SCREEN_WIDTH, SCREEN_HEIGHT, RENDER_FPS
from .data_models import GamePhase, ScoreRecord
from .game_engine import GameEngine
from .score_client import ScoreClient, Outcome, format_score, format_date

logger = logging.getLogger(__name__)

SKY_COLOR = (135, 206, 235)
GROUND_COLOR = (222, 184, 135)
PLAYER_COLOR = (246, 215, 15)
OBSTACLE_COLOR = (44, 62, 80)
TEXT_COLOR = (255, 255, 255)
DIM_TEXT_COLOR = (200, 200, 200)


# ----------------- Score Sync (background network work) -----------------

class ScoreSync:
    """
    Runs blocking ScoreClient calls off the render thread. Results are read
    by the render loop under state_lock.
    """

    def __init__(self, client: ScoreClient):
        self.client = client
        self.state_lock = threading.Lock()
        self.leaderboard: List[ScoreRecord] = []
        self.leaderboard_source = ""
        self.status_message = ""

    def _spawn(self, target, *args):
        thread = threading.Thread(target=target, args=args, daemon=True)
        thread.start()
        return thread

    def submit_async(self, name: str, score: int, level: int):
        return self._spawn(self._submit, name, score, level)

    def refresh_leaderboard_async(self):
        return self._spawn(self._refresh)

    def _submit(self, name: str, score: int, level: int):
        with self.state_lock:
            self.status_message = "Saving score..."
        outcome = self.client.submit(name, score, level)
        with self.state_lock:
            self.status_message = self._describe(outcome)
        self._refresh()

    def _refresh(self):
        outcome = self.client.get_leaderboard()
        with self.state_lock:
            if outcome.success:
                self.leaderboard = outcome.data
                self.leaderboard_source = outcome.source
            else:
                self.leaderboard = []
                self.leaderboard_source = "unavailable"

    @staticmethod
    def _describe(outcome: Outcome) -> str:
        if not outcome.success:
            return "; ".join(outcome.errors) or outcome.message
        if outcome.source == "local":
            return "Saved locally (server unavailable)"
        return "Score saved!"

    def fetch_state(self):
        """Safely retrieve the latest leaderboard and status line."""
        with self.state_lock:
            return list(self.leaderboard), self.leaderboard_source, self.status_message


# ----------------- Game Client (rendering / input) -----------------

class RunnerClient:
    def __init__(self, player_name: str, engine: GameEngine, client: ScoreClient):
        pygame.init()
        self.player_name = player_name
        self.screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT))
        pygame.display.set_caption(f"Dash Runner: {player_name}")

        self.engine = engine
        self.client = client
        self.sync = ScoreSync(client)

        self.best_score = client.best_score()
        self.new_record = False
        self.engine.subscribe("ended", self._on_game_over)

        self.clock = pygame.time.Clock()
        self.large_font: Optional[pygame.font.Font] = None
        self.font: Optional[pygame.font.Font] = None

    def _on_game_over(self, event: str, payload: dict):
        score, level = payload["score"], payload["level"]
        self.new_record = self.client.record_best_score(score)
        if self.new_record:
            self.best_score = score
        self.sync.submit_async(self.player_name, score, level)

    def run(self):
        """The main client execution loop."""
        self.large_font = pygame.font.Font(None, 40)
        self.font = pygame.font.Font(None, 24)
        self.sync.refresh_leaderboard_async()

        running = True
        while running:
            dt = self.clock.tick(RENDER_FPS)

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.MOUSEBUTTONDOWN:
                    self.engine.jump()
                elif event.type == pygame.KEYDOWN:
                    running = self._handle_key(event.key)

            self.engine.advance(dt)
            self._draw_game()

        pygame.quit()

    def _handle_key(self, key) -> bool:
        engine = self.engine
        if key == pygame.K_q:
            return False
        if key == pygame.K_SPACE:
            engine.jump()
        elif key == pygame.K_p:
            engine.toggle_pause()
        elif key == pygame.K_ESCAPE:
            if engine.phase is GamePhase.RUNNING:
                engine.pause()
            else:
                engine.quit_to_menu()
        elif key == pygame.K_r and engine.phase is GamePhase.ENDED:
            self.new_record = False
            engine.restart()
        return True

    def _draw_game(self):
        """Renders the game state using Pygame."""
        screen = self.screen
        engine = self.engine
        ground_y = engine.config.ground_y
        screen.fill(SKY_COLOR)

        # Ground with scrolling stripes
        pygame.draw.rect(screen, GROUND_COLOR, (0, ground_y, SCREEN_WIDTH, SCREEN_HEIGHT - ground_y))
        x = -engine.ground_offset
        while x < SCREEN_WIDTH:
            pygame.draw.line(screen, OBSTACLE_COLOR, (x, ground_y + 10), (x + 10, ground_y + 10), 2)
            x += 20

        for rect in engine.obstacle_rects():
            pygame.draw.rect(screen, OBSTACLE_COLOR, rect)

        pygame.draw.rect(screen, PLAYER_COLOR, engine.actor_rect(), border_radius=6)

        for particle in engine.particles:
            radius = max(1, int(4 * particle.life))
            pygame.draw.circle(screen, particle.color, (int(particle.x), int(particle.y)), radius)

        self._draw_hud()
        pygame.display.flip()

    def _blit_centered(self, text: str, y: int, font, color=TEXT_COLOR):
        surf = font.render(text, True, color)
        self.screen.blit(surf, (SCREEN_WIDTH // 2 - surf.get_width() // 2, y))

    def _draw_hud(self):
        engine = self.engine
        screen = self.screen
        font, large_font = self.font, self.large_font

        screen.blit(font.render(f"Score: {format_score(engine.score)}", True, TEXT_COLOR), (10, 10))
        screen.blit(font.render(f"Level: {engine.level}", True, TEXT_COLOR), (10, 32))
        screen.blit(font.render(f"Best: {format_score(self.best_score)}", True, TEXT_COLOR), (10, 54))

        # Level progress bar
        bar_x, bar_w = SCREEN_WIDTH - 220, 200
        pygame.draw.rect(screen, DIM_TEXT_COLOR, (bar_x, 20, bar_w, 10), 1)
        pygame.draw.rect(screen, PLAYER_COLOR, (bar_x, 20, int(bar_w * engine.level_progress()), 10))

        phase = engine.phase
        if phase is GamePhase.START:
            self._blit_centered("DASH RUNNER", 100, large_font)
            self._blit_centered("Space / Click = Jump | P = Pause | Q = Quit", 150, font, DIM_TEXT_COLOR)
            self._draw_leaderboard(190)
        elif phase is GamePhase.PAUSED:
            self._blit_centered("PAUSED", 140, large_font)
            self._blit_centered("P = Resume | Esc = Menu", 185, font, DIM_TEXT_COLOR)
        elif phase is GamePhase.ENDED:
            self._blit_centered(f"Game over - {format_score(engine.score)} (level {engine.level})", 80, large_font)
            if self.new_record:
                self._blit_centered("New record!", 120, font, PLAYER_COLOR)
            _, _, status = self.sync.fetch_state()
            self._blit_centered(status, 145, font, DIM_TEXT_COLOR)
            self._blit_centered("R = Restart | Esc = Menu", 170, font, DIM_TEXT_COLOR)
            self._draw_leaderboard(200)

    def _draw_leaderboard(self, top: int):
        leaderboard, source, _ = self.sync.fetch_state()
        title = "Leaderboard" + (f" ({source})" if source else "")
        self._blit_centered(title, top, self.font)
        for i, record in enumerate(leaderboard[:5]):
            tag = " *" if record.is_local else ""
            line = (f"{i + 1}. {record.player_name} - {format_score(record.score)}"
                    f" L{record.level} {format_date(record.timestamp)}{tag}")
            self._blit_centered(line, top + 24 * (i + 1), self.font, DIM_TEXT_COLOR)
