"""
game_engine.py: The runner simulation and its phase state machine.
"""

import logging
import random
from dataclasses import dataclass, field, asdict
from typing import Callable, Dict, List, Optional

from .constants import (
    SCREEN_WIDTH, SCREEN_HEIGHT, GROUND_HEIGHT, PLAYER_X, PLAYER_WIDTH, PLAYER_HEIGHT,
    GRAVITY, JUMP_IMPULSE, OBSTACLE_WIDTH, OBSTACLE_MIN_HEIGHT, OBSTACLE_MAX_HEIGHT,
    OBSTACLE_HEIGHT_STEP, OBSTACLE_SPACING, OBSTACLE_SPACING_STEP,
    OBSTACLE_MAX_SPACING_REDUCTION, OBSTACLE_MIN_SPACING, BASE_SPEED, SPEED_INCREMENT,
    SCORE_INCREMENT, PASS_BONUS, LEVEL_THRESHOLD
)
from .data_models import Actor, Obstacle, Particle, GamePhase, Rect
from .particles import ParticleSystem
from .physics_core import PhysicsCore

logger = logging.getLogger(__name__)

Listener = Callable[[str, dict], None]

EVENTS = ("started", "scored", "level_up", "collided", "ended")


@dataclass
class EngineConfig:
    """Tunables for one engine instance. Defaults come from constants.py."""
    screen_width: float = SCREEN_WIDTH
    screen_height: float = SCREEN_HEIGHT
    ground_height: float = GROUND_HEIGHT
    player_x: float = PLAYER_X
    player_width: float = PLAYER_WIDTH
    player_height: float = PLAYER_HEIGHT
    gravity: float = GRAVITY
    jump_impulse: float = JUMP_IMPULSE
    obstacle_width: float = OBSTACLE_WIDTH
    obstacle_min_height: float = OBSTACLE_MIN_HEIGHT
    obstacle_max_height: float = OBSTACLE_MAX_HEIGHT
    obstacle_height_step: float = OBSTACLE_HEIGHT_STEP
    obstacle_spacing: float = OBSTACLE_SPACING
    obstacle_spacing_step: float = OBSTACLE_SPACING_STEP
    obstacle_max_spacing_reduction: float = OBSTACLE_MAX_SPACING_REDUCTION
    obstacle_min_spacing: float = OBSTACLE_MIN_SPACING
    base_speed: float = BASE_SPEED
    speed_increment: float = SPEED_INCREMENT
    score_increment: int = SCORE_INCREMENT
    pass_bonus: int = PASS_BONUS
    level_threshold: int = LEVEL_THRESHOLD
    particles: bool = True

    @property
    def ground_y(self) -> float:
        return self.screen_height - self.ground_height


@dataclass
class GameEngine(PhysicsCore):
    """
    Owns the actor, obstacles, score and level, and advances them once per tick.

    Commands issued in a phase that does not accept them are silently ignored;
    the input layer can race phase transitions, so nothing here raises.
    """
    config: EngineConfig = field(default_factory=EngineConfig)
    rng: random.Random = field(default_factory=random.Random)
    phase: GamePhase = GamePhase.START
    actor: Actor = field(default_factory=Actor)
    obstacles: List[Obstacle] = field(default_factory=list)
    score: int = 0
    level: int = 1
    tick_count: int = 0
    ground_offset: float = 0.0
    effects: Optional[ParticleSystem] = None
    listeners: Dict[str, List[Listener]] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        self.gravity = self.config.gravity
        self.jump_impulse = self.config.jump_impulse
        self._reset_run()
        if self.effects is None and self.config.particles:
            self.effects = ParticleSystem()
        if self.effects is not None:
            self.effects.attach(self)

    # ---------- Events ----------

    def subscribe(self, event: str, callback: Listener):
        if event not in EVENTS:
            raise ValueError(f"Unknown engine event: {event}")
        self.listeners.setdefault(event, []).append(callback)

    def _emit(self, event: str, **payload):
        payload.setdefault("actor", self.actor.rect())
        for callback in self.listeners.get(event, []):
            callback(event, payload)

    # ---------- Commands ----------

    def start(self):
        """Resets all run state and enters RUNNING."""
        self._reset_run()
        self.phase = GamePhase.RUNNING
        logger.debug("Run started")
        self._emit("started")

    def restart(self):
        self.start()

    def jump(self):
        if self.phase is GamePhase.START:
            self.start()
            return
        if self.phase is GamePhase.RUNNING:
            self.apply_jump(self.actor)

    def pause(self):
        if self.phase is GamePhase.RUNNING:
            self.phase = GamePhase.PAUSED

    def resume(self):
        if self.phase is GamePhase.PAUSED:
            self.phase = GamePhase.RUNNING

    def toggle_pause(self):
        if self.phase is GamePhase.RUNNING:
            self.pause()
        elif self.phase is GamePhase.PAUSED:
            self.resume()

    def quit_to_menu(self):
        """Back to the start screen; state is kept until the next start()."""
        if self.phase in (GamePhase.PAUSED, GamePhase.ENDED):
            self.phase = GamePhase.START

    # ---------- Tick ----------

    def advance(self, dt: float):
        """
        One simulation tick. dt is the elapsed frame time in milliseconds and
        only drives particle decay; movement is per tick.
        """
        if self.phase is not GamePhase.RUNNING:
            return

        self.tick_count += 1

        # 1. Actor physics
        self.step_actor(self.actor, self.config.ground_y)

        # 2. Move obstacles and drop the ones fully off-screen
        speed = self.current_speed()
        for obstacle in self.obstacles:
            obstacle.x -= speed
        self.obstacles = [o for o in self.obstacles if o.right >= 0]

        # 3. Spawn
        last = self.obstacles[-1] if self.obstacles else None
        if last is None or self.config.screen_width - last.x >= self.obstacle_spacing():
            self._spawn_obstacle()

        # 4. Particles
        if self.effects is not None:
            self.effects.step(dt)

        # 5. Score
        self._accrue_score()

        # 6. Level
        self._update_level()

        self.ground_offset += speed * 0.5
        if self.ground_offset > 20:
            self.ground_offset = 0.0

        # 7. Collision is last and authoritative
        hit = self.check_collision(self.actor, self.obstacles)
        if hit is not None:
            self._emit("collided", obstacle=hit.rect())
            self.phase = GamePhase.ENDED
            logger.info("Game over - score: %d, level: %d", self.score, self.level)
            self._emit("ended", score=self.score, level=self.level)

    def _spawn_obstacle(self):
        cfg = self.config
        max_height = cfg.obstacle_max_height + self.level * cfg.obstacle_height_step
        height = self.rng.uniform(cfg.obstacle_min_height, max_height)
        self.obstacles.append(Obstacle(
            x=float(cfg.screen_width),
            y=cfg.ground_y - height,
            width=cfg.obstacle_width,
            height=height,
        ))

    def _accrue_score(self):
        self.score += self.config.score_increment
        for obstacle in self.obstacles:
            if not obstacle.scored and obstacle.right < self.actor.x:
                obstacle.scored = True
                self.score += self.config.pass_bonus
                self._emit("scored", obstacle=obstacle.rect(), bonus=self.config.pass_bonus)

    def _update_level(self):
        new_level = self.score // self.config.level_threshold + 1
        while self.level < new_level:
            self.level += 1
            logger.info("Level %d reached", self.level)
            self._emit("level_up", level=self.level)

    def _reset_run(self):
        cfg = self.config
        self.score = 0
        self.level = 1
        self.tick_count = 0
        self.ground_offset = 0.0
        self.obstacles = []
        self.actor = Actor(x=cfg.player_x, width=cfg.player_width, height=cfg.player_height)
        self.ground_actor(self.actor, cfg.ground_y)
        if self.effects is not None:
            self.effects.clear()

    # ---------- Queries ----------

    def current_speed(self) -> float:
        return self.config.base_speed + (self.level // 2) * self.config.speed_increment

    def obstacle_spacing(self) -> float:
        cfg = self.config
        reduction = min(self.level * cfg.obstacle_spacing_step, cfg.obstacle_max_spacing_reduction)
        return max(cfg.obstacle_spacing - reduction, cfg.obstacle_min_spacing)

    def level_progress(self) -> float:
        threshold = self.config.level_threshold
        return (self.score % threshold) / threshold

    @property
    def particles(self) -> List[Particle]:
        return self.effects.particles if self.effects is not None else []

    def actor_rect(self) -> Rect:
        return self.actor.rect()

    def obstacle_rects(self) -> List[Rect]:
        return [o.rect() for o in self.obstacles]

    def snapshot(self) -> dict:
        """Plain-data view of the run, one dict per frame for drawing or tests."""
        return {
            "phase": self.phase.value,
            "score": self.score,
            "level": self.level,
            "tick": self.tick_count,
            "actor": asdict(self.actor),
            "obstacles": [asdict(o) for o in self.obstacles],
            "particles": [asdict(p) for p in self.particles],
        }
