"""
Pytest fixtures for resource runners tests.

Provides fixtures for:
- Seeded random sources
- Small evolution configurations
- Stub world and physics collaborators
"""
import random
from typing import Dict, List, Optional, Tuple

import pytest

from resource_runners.encoders import Kinematics
from resource_runners.evolution import EvolutionConfig
from resource_runners.networks import make_generator
from resource_runners.simulation import Environment, PhysicsBackend


class OpenField(Environment):
    """
    Obstacle-free world with an optional single resource.

    Records how often the population called its mutating hooks.
    """

    def __init__(
        self,
        resource: Optional[Tuple[float, float]] = None,
        ray_distance: Optional[float] = None,
        bounds: Tuple[float, float] = (800.0, 500.0),
    ):
        self.resource = resource
        self.ray_distance = ray_distance
        self.bounds = bounds
        self.resolve_calls = 0
        self.reset_calls = 0
        self.resolved_agents: List[List[str]] = []

    def ray_cast(self, origin, angle, max_length):
        if self.ray_distance is None:
            return max_length
        return min(self.ray_distance, max_length)

    def nearest_uncollected_resource(self, position, exclude_if_holding=False):
        if exclude_if_holding:
            return None
        return self.resource

    def world_bounds(self):
        return self.bounds

    def resolve_interactions(self, agents, physics):
        self.resolve_calls += 1
        self.resolved_agents.append([agent.id for agent in agents])

    def reset(self):
        self.reset_calls += 1


class RecordingPhysics(PhysicsBackend):
    """Physics stub that stores bodies as plain kinematics and logs commands."""

    def __init__(self, velocity: Tuple[float, float] = (0.0, 0.0)):
        self.velocity = velocity
        self.bodies: Dict[str, Kinematics] = {}
        self.commands: List[Tuple[str, object]] = []
        self.detached: List[str] = []

    def attach_embodiment(self, agent_id, start_position):
        self.bodies[agent_id] = Kinematics(
            position=tuple(start_position),
            velocity=self.velocity,
        )

    def detach_embodiment(self, agent_id):
        self.bodies.pop(agent_id, None)
        self.detached.append(agent_id)

    def apply_motor_command(self, agent_id, command):
        self.commands.append((agent_id, command))

    def current_kinematics(self, agent_id):
        return self.bodies[agent_id]


@pytest.fixture
def generator():
    """Return a seeded torch generator."""
    return make_generator(1234)


@pytest.fixture
def rng() -> random.Random:
    """Return a seeded Python random source."""
    return random.Random(1234)


@pytest.fixture
def small_config() -> EvolutionConfig:
    """Return a small, fast, seeded evolution configuration."""
    return EvolutionConfig(
        population_size=10,
        elite_count=2,
        tournament_size=3,
        mutation_rate=0.1,
        mutation_strength=0.3,
        episode_length=5,
        seed=7,
    )


@pytest.fixture
def open_field() -> OpenField:
    """Return an obstacle-free environment stub."""
    return OpenField(resource=(400.0, 250.0))


@pytest.fixture
def physics() -> RecordingPhysics:
    """Return a physics stub whose bodies move slowly to the right."""
    return RecordingPhysics(velocity=(1.0, 0.0))


@pytest.fixture
def idle_physics() -> RecordingPhysics:
    """Return a physics stub whose bodies never move."""
    return RecordingPhysics(velocity=(0.0, 0.0))
