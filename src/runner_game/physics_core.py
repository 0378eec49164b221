"""
physics_core.py: The deterministic kinematic functions and collision logic.
"""

from typing import Iterable, Optional, Tuple

from .constants import GRAVITY, JUMP_IMPULSE
from .data_models import Actor, Obstacle, Rect


def rects_overlap(a: Rect, b: Rect) -> bool:
    """
    Strict AABB overlap. Rectangles that only share an edge do not collide.
    """
    ax, ay, aw, ah = a
    bx, by, bw, bh = b
    return (ax < bx + bw and
            ax + aw > bx and
            ay < by + bh and
            ay + ah > by)


class PhysicsCore:
    """
    Per-tick physics shared by the game engine. Units are per tick, not per second.
    """

    gravity: float = GRAVITY
    jump_impulse: float = JUMP_IMPULSE

    def apply_gravity_and_movement(self, y: float, velocity: float) -> Tuple[float, float]:
        """Calculates new position and velocity after one tick."""
        velocity += self.gravity
        y += velocity
        return y, velocity

    def step_actor(self, actor: Actor, ground_y: float):
        """Moves the actor one tick and lands it on the ground line."""
        actor.y, actor.velocity_y = self.apply_gravity_and_movement(
            actor.y, actor.velocity_y)

        floor = ground_y - actor.height
        if actor.y >= floor:
            actor.y = floor
            actor.velocity_y = 0.0
            actor.jumping = False

    def apply_jump(self, actor: Actor) -> bool:
        """Applies the jump impulse if the actor is grounded."""
        if actor.jumping:
            return False
        actor.velocity_y = self.jump_impulse
        actor.jumping = True
        return True

    def check_collision(self, actor: Actor, obstacles: Iterable[Obstacle]) -> Optional[Obstacle]:
        """Returns the first obstacle the actor overlaps, if any."""
        actor_rect = actor.rect()
        for obstacle in obstacles:
            if rects_overlap(actor_rect, obstacle.rect()):
                return obstacle
        return None

    def ground_actor(self, actor: Actor, ground_y: float):
        actor.y = ground_y - actor.height
        actor.velocity_y = 0.0
        actor.jumping = False
