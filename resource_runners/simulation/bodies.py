"""
Headless point-mass stand-in for the physics collaborator.

Each agent is a disc with a heading. Wheel forces push it along its
heading (their sum) and turn it (their difference); a jump gives an
upward kick. Velocity is damped by air friction, capped, and bodies are
clamped to the world rectangle. This is enough to train and test
policies without a rigid-body engine; a real engine can replace it by
implementing PhysicsBackend.
"""
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..agents import MotorCommand
from ..encoders import Kinematics
from .base import PhysicsBackend


@dataclass
class BodyConfig:
    """Integration constants for the point-mass model."""
    radius: float = 15.0
    air_friction: float = 0.02
    max_speed: float = 8.0
    thrust_gain: float = 50.0
    turn_gain: float = 5.0
    jump_gain: float = 1000.0
    gravity: float = 0.0  # top-down world by default


class Body:
    """Mutable state of one embodiment."""

    def __init__(self, position: Tuple[float, float], heading: float = 0.0):
        self.position = np.array(position, dtype=np.float64)
        self.velocity = np.zeros(2, dtype=np.float64)
        self.heading = heading
        self.pending: Optional[MotorCommand] = None


class KinematicWorld(PhysicsBackend):
    """
    Id-keyed table of point-mass bodies.

    Motor commands are buffered by apply_motor_command and integrated on
    the next advance(), so commands issued during a step never change
    what other agents sense in that step.

    Example:
        world = KinematicWorld(800, 500)
        world.attach_embodiment('gen0001_ind_000', (50, 450))
        world.apply_motor_command('gen0001_ind_000', command)
        world.advance()
    """

    def __init__(self, width: float, height: float, config: Optional[BodyConfig] = None):
        self.width = float(width)
        self.height = float(height)
        self.config = config or BodyConfig()
        self._bodies: Dict[str, Body] = {}

    def __len__(self) -> int:
        return len(self._bodies)

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._bodies

    def body_ids(self) -> List[str]:
        return list(self._bodies)

    def attach_embodiment(self, agent_id: str, start_position: Tuple[float, float]) -> None:
        if agent_id in self._bodies:
            raise ValueError(f"Agent {agent_id} already has an embodiment")
        self._bodies[agent_id] = Body(start_position)

    def detach_embodiment(self, agent_id: str) -> None:
        self._bodies.pop(agent_id, None)

    def apply_motor_command(self, agent_id: str, command: MotorCommand) -> None:
        self._body(agent_id).pending = command

    def current_kinematics(self, agent_id: str) -> Kinematics:
        body = self._body(agent_id)
        return Kinematics(
            position=(float(body.position[0]), float(body.position[1])),
            velocity=(float(body.velocity[0]), float(body.velocity[1])),
            heading=body.heading,
        )

    def place(
        self,
        agent_id: str,
        position: Optional[Tuple[float, float]] = None,
        velocity: Optional[Tuple[float, float]] = None,
        heading: Optional[float] = None,
    ) -> None:
        """Overwrite parts of a body's state."""
        body = self._body(agent_id)
        if position is not None:
            body.position = np.array(position, dtype=np.float64)
        if velocity is not None:
            body.velocity = np.array(velocity, dtype=np.float64)
        if heading is not None:
            body.heading = heading

    def advance(self) -> None:
        """Integrate every body by one frame."""
        config = self.config
        low = np.array([config.radius, config.radius])
        high = np.array([self.width - config.radius, self.height - config.radius])

        for body in self._bodies.values():
            command = body.pending
            if command is not None:
                thrust = (command.left_force + command.right_force) * 0.5 * config.thrust_gain
                turn = (command.right_force - command.left_force) * 0.5 * config.turn_gain
                body.heading = (body.heading + turn) % (2 * math.pi)
                body.velocity += thrust * np.array([math.cos(body.heading), math.sin(body.heading)])
                if command.jump:
                    body.velocity[1] -= command.jump_force * config.jump_gain
                body.pending = None

            body.velocity[1] += config.gravity
            body.velocity *= 1.0 - config.air_friction

            speed = float(np.linalg.norm(body.velocity))
            if speed > config.max_speed:
                body.velocity *= config.max_speed / speed

            moved = body.position + body.velocity
            clamped = np.clip(moved, low, high)
            body.velocity[clamped != moved] = 0.0
            body.position = clamped

    def _body(self, agent_id: str) -> Body:
        try:
            return self._bodies[agent_id]
        except KeyError:
            raise KeyError(f"No embodiment for agent {agent_id}") from None
