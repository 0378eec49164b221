"""
particles.py: Cosmetic particle bursts driven by engine events.

A headless engine never needs this module; the engine only calls into it
when one is attached.
"""

import random
from dataclasses import dataclass, field
from typing import List, Tuple

from .constants import (
    PARTICLE_BURST, PARTICLE_SPREAD, PARTICLE_GRAVITY, PARTICLE_DECAY,
    SCORE_COLOR, LEVEL_UP_COLOR, CRASH_COLOR
)
from .data_models import Particle

EVENT_COLORS = {
    "scored": SCORE_COLOR,
    "level_up": LEVEL_UP_COLOR,
    "collided": CRASH_COLOR,
}

# Level-up bursts appear slightly above the actor
EVENT_Y_OFFSET = {"level_up": -20}


@dataclass
class ParticleSystem:
    rng: random.Random = field(default_factory=random.Random)
    burst_size: int = PARTICLE_BURST
    particles: List[Particle] = field(default_factory=list)

    def burst(self, x: float, y: float, color: Tuple[int, int, int]):
        """Emits a fixed-size burst centred on (x, y)."""
        for _ in range(self.burst_size):
            self.particles.append(Particle(
                x=x,
                y=y,
                velocity_x=(self.rng.random() - 0.5) * PARTICLE_SPREAD,
                velocity_y=(self.rng.random() - 0.5) * PARTICLE_SPREAD,
                color=color,
            ))

    def step(self, dt: float):
        """Integrates every particle and drops the expired ones. dt is in ms."""
        for particle in self.particles:
            particle.x += particle.velocity_x
            particle.y += particle.velocity_y
            particle.velocity_y += PARTICLE_GRAVITY
            particle.life -= dt * PARTICLE_DECAY

        self.particles = [p for p in self.particles if p.life > 0]

    def clear(self):
        self.particles = []

    def on_event(self, event: str, payload: dict):
        """Engine listener: payload carries the actor rect at the time of the event."""
        color = EVENT_COLORS.get(event)
        if color is None:
            return
        x, y, width, height = payload["actor"]
        y += EVENT_Y_OFFSET.get(event, 0)
        self.burst(x + width / 2, y + height / 2, color)

    def attach(self, engine):
        for event in EVENT_COLORS:
            engine.subscribe(event, self.on_event)
