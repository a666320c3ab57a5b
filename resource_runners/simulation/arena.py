"""
Reference world provider: the resource runners arena.

A rectangular world with a fixed obstacle layout, four home bases in the
corners and a set of resources ("crystals") that runners pick up and
carry home. Collected resources respawn at a random free spot after a
fixed number of frames.
"""
import logging
import math
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

from ..encoders import cast_ray
from .base import Environment, PhysicsBackend

if TYPE_CHECKING:
    from ..agents import Agent

logger = logging.getLogger(__name__)

Vector2 = Tuple[float, float]


@dataclass
class ArenaConfig:
    """World layout and interaction constants."""

    # World
    width: float = 800.0
    height: float = 500.0
    base_inset: float = 50.0

    # Resources
    num_resources: int = 8
    respawn_frames: int = 300
    spawn_attempts: int = 50
    obstacle_clearance: float = 50.0
    resource_clearance: float = 40.0

    # Interactions
    pickup_radius: float = 25.0
    base_radius: float = 30.0
    contact_radius: float = 35.0
    steal_speed_margin: float = 2.0

    # Ray casting
    ray_step: float = 5.0
    obstacle_radius: float = 20.0

    seed: Optional[int] = None


@dataclass
class Resource:
    """A collectable resource."""
    position: Vector2
    collected: bool = False
    respawn_timer: int = 0


def _distance_sq(a: Vector2, b: Vector2) -> float:
    return (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2


class Arena(Environment):
    """
    Headless arena implementing the Environment interface.

    Layout (for width W, height H):
        - Obstacles: central hill (W/2, H-100), platforms (150, H-200) and
          (W-150, H-200), pendulum bob (W/2, 200), seesaw plank (W/4, H-70)
        - Bases: one per corner, inset by base_inset

    Example:
        arena = Arena(ArenaConfig(seed=3))
        arena.update()                         # respawn timers
        arena.resolve_interactions(agents, physics)
    """

    def __init__(self, config: Optional[ArenaConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or ArenaConfig()
        self.width = self.config.width
        self.height = self.config.height
        self.rng = rng or random.Random(self.config.seed)

        self.obstacles: List[Vector2] = self._create_obstacles()
        self.bases: List[Vector2] = self._create_bases()
        self.resources: List[Resource] = []
        self._spawn_all()

    def _create_obstacles(self) -> List[Vector2]:
        w, h = self.width, self.height
        return [
            (w / 2, h - 100),   # hill
            (150.0, h - 200),   # left platform
            (w - 150, h - 200),  # right platform
            (w / 2, 200.0),     # pendulum bob
            (w / 4, h - 70),    # seesaw plank
        ]

    def _create_bases(self) -> List[Vector2]:
        w, h, inset = self.width, self.height, self.config.base_inset
        return [
            (inset, h - inset),      # bottom left
            (w - inset, h - inset),  # bottom right
            (inset, inset),          # top left
            (w - inset, inset),      # top right
        ]

    @property
    def base_positions(self) -> Tuple[Vector2, ...]:
        """Home bases, usable as population spawn points."""
        return tuple(self.bases)

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def spawn_resource(self) -> Resource:
        """
        Place a new resource by rejection sampling.

        Candidates closer than obstacle_clearance to an obstacle or
        resource_clearance to another resource are rejected. After
        spawn_attempts failures the last candidate is used anyway.
        """
        config = self.config
        obstacle_sq = config.obstacle_clearance ** 2
        resource_sq = config.resource_clearance ** 2

        position = (0.0, 0.0)
        for _ in range(config.spawn_attempts):
            position = (
                self.rng.random() * (self.width - 100) + 50,
                self.rng.random() * (self.height - 200) + 50,
            )
            if any(_distance_sq(position, o) < obstacle_sq for o in self.obstacles):
                continue
            if any(_distance_sq(position, r.position) < resource_sq for r in self.resources):
                continue
            break

        resource = Resource(position=position)
        self.resources.append(resource)
        return resource

    def _spawn_all(self) -> None:
        for _ in range(self.config.num_resources):
            self.spawn_resource()

    def update(self) -> None:
        """Advance respawn timers and replace resources that are due."""
        for i in range(len(self.resources) - 1, -1, -1):
            resource = self.resources[i]
            if not resource.collected:
                continue
            resource.respawn_timer += 1
            if resource.respawn_timer >= self.config.respawn_frames:
                del self.resources[i]
                spawned = self.spawn_resource()
                logger.debug(f"Resource respawned at {spawned.position}")

    def reset(self) -> None:
        """Discard every resource and place a fresh set."""
        self.resources = []
        self._spawn_all()

    # ------------------------------------------------------------------
    # EnvironmentView
    # ------------------------------------------------------------------

    def ray_cast(self, origin: Vector2, angle: float, max_length: float) -> float:
        return cast_ray(
            origin,
            angle,
            max_length,
            self.world_bounds(),
            self.obstacles,
            step=self.config.ray_step,
            obstacle_radius=self.config.obstacle_radius,
        )

    def nearest_uncollected_resource(
        self,
        position: Vector2,
        exclude_if_holding: bool = False,
    ) -> Optional[Vector2]:
        if exclude_if_holding:
            return None

        nearest = None
        best = math.inf
        for resource in self.resources:
            if resource.collected:
                continue
            d = _distance_sq(position, resource.position)
            if d < best:
                best = d
                nearest = resource.position
        return nearest

    def world_bounds(self) -> Tuple[float, float]:
        return (self.width, self.height)

    # ------------------------------------------------------------------
    # Interactions
    # ------------------------------------------------------------------

    def resolve_interactions(
        self,
        agents: Sequence['Agent'],
        physics: PhysicsBackend,
    ) -> None:
        """
        Resolve pickups, deliveries and agent contacts.

        Per agent, in list order:
        1. Pickup: the first uncollected resource within pickup_radius,
           unless the agent already carries one.
        2. Delivery: while carrying, the first base within base_radius
           triggers a delivery attempt scored against the agent's home.

        Then, for each pair of agents within contact_radius, both count a
        collision; a carrier loses its resource to a partner that is
        faster by more than steal_speed_margin.
        """
        config = self.config
        active = [agent for agent in agents if agent.alive]
        kinematics = {agent.id: physics.current_kinematics(agent.id) for agent in active}

        pickup_sq = config.pickup_radius ** 2
        base_sq = config.base_radius ** 2

        for agent in active:
            position = kinematics[agent.id].position

            if not agent.holding:
                for resource in self.resources:
                    if resource.collected:
                        continue
                    if _distance_sq(position, resource.position) < pickup_sq:
                        agent.on_resource_pickup()
                        resource.collected = True
                        resource.respawn_timer = 0
                        break

            if agent.holding:
                for base in self.bases:
                    if _distance_sq(position, base) < base_sq:
                        distance_home = math.sqrt(_distance_sq(position, agent.home))
                        agent.on_resource_deliver_attempt(distance_home)
                        break

        contact_sq = config.contact_radius ** 2
        for i, agent_a in enumerate(active):
            kin_a = kinematics[agent_a.id]
            for agent_b in active[i + 1:]:
                kin_b = kinematics[agent_b.id]
                if _distance_sq(kin_a.position, kin_b.position) >= contact_sq:
                    continue

                agent_a.on_collision()
                agent_b.on_collision()

                speed_a = math.hypot(*kin_a.velocity)
                speed_b = math.hypot(*kin_b.velocity)
                if agent_a.holding and speed_b > speed_a + config.steal_speed_margin:
                    agent_a.on_resource_stolen()
                    agent_b.on_resource_pickup()
                    logger.debug(f"Agent {agent_b.id} stole from {agent_a.id}")
                elif agent_b.holding and speed_a > speed_b + config.steal_speed_margin:
                    agent_b.on_resource_stolen()
                    agent_a.on_resource_pickup()
                    logger.debug(f"Agent {agent_a.id} stole from {agent_b.id}")
