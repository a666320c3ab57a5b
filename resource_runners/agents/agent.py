"""
Runner agent: a policy network plus per-episode fitness bookkeeping.

An agent owns exactly one brain (PolicyNetwork). It turns sensor vectors
into motor intents and counts the events reported by the environment
(pickups, deliveries, steals, collisions). It never applies forces
itself; the physics collaborator consumes the MotorCommand it emits.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

from ..networks import PolicyNetwork

if TYPE_CHECKING:
    import torch

logger = logging.getLogger(__name__)

Vector2 = Tuple[float, float]


@dataclass
class MotorConfig:
    """How raw network outputs map to physical intents."""
    force_scale: float = 0.01
    jump_threshold: float = 0.5
    jump_force: float = 0.003


@dataclass
class FitnessConfig:
    """Fitness shaping constants."""
    delivery_reward: float = 100.0
    collision_penalty: float = 5.0
    holding_reward: float = 0.1
    idle_penalty: float = 1.0
    idle_speed_threshold: float = 0.1
    delivery_radius: float = 40.0


@dataclass(frozen=True)
class MotorCommand:
    """
    Motor intent for one step.

    Attributes:
        left_force: Scaled force for the left wheel.
        right_force: Scaled force for the right wheel.
        jump_force: Upward impulse, zero unless the jump fired.
        outputs: Raw network outputs the command was decoded from.
    """
    left_force: float = 0.0
    right_force: float = 0.0
    jump_force: float = 0.0
    outputs: Tuple[float, ...] = ()

    @property
    def jump(self) -> bool:
        """Whether the jump trigger fired."""
        return self.jump_force > 0.0


class Agent:
    """
    A runner controlled by an evolved policy network.

    Attributes:
        id: Identifier, stable within one generation. Physics collaborators
            key embodiments by this id.
        home: Home base position; deliveries are scored against it.
        brain: The exclusively owned PolicyNetwork.
        generation: Generation the agent was created for.
        origin: 'initial', 'elite' or 'offspring'.
        parent_ids: Ids of the agents this brain descends from.
        fitness: Last value computed by compute_fitness().

    Example:
        agent = Agent('gen0001_ind_000', home=(50, 450))
        command = agent.decide(encoder.encode(kinematics, arena, agent.holding))
        physics.apply_motor_command(agent.id, command)
    """

    def __init__(
        self,
        agent_id: str,
        home: Vector2,
        brain: Optional[PolicyNetwork] = None,
        motor_config: Optional[MotorConfig] = None,
        fitness_config: Optional[FitnessConfig] = None,
        generation: int = 1,
        origin: str = 'initial',
        parent_ids: Optional[List[str]] = None,
        generator: Optional['torch.Generator'] = None,
    ):
        """
        Initialize an agent.

        Args:
            agent_id: Identifier, unique within the generation.
            home: Home base / start position.
            brain: Network to own. A fresh 8/12/3 network is created if None.
                   Callers must hand over a network no other agent holds.
            motor_config: Output decoding constants.
            fitness_config: Fitness shaping constants.
            generation: Generation number.
            origin: How the brain was produced.
            parent_ids: Lineage of the brain.
            generator: Random source for a freshly created brain.
        """
        self.id = agent_id
        self.home = (float(home[0]), float(home[1]))
        self.brain = brain if brain is not None else PolicyNetwork(generator=generator)
        self.motor_config = motor_config or MotorConfig()
        self.fitness_config = fitness_config or FitnessConfig()
        self.generation = generation
        self.origin = origin
        self.parent_ids = list(parent_ids or [])

        self.fitness = 0.0
        self.resources_collected = 0
        self.resources_delivered = 0
        self.frames_holding = 0
        self.collisions = 0
        self.alive = True
        self.holding = False
        self.last_action: Tuple[float, ...] = (0.0,) * self.brain.output_size

    def __repr__(self) -> str:
        return f"Agent(id={self.id!r}, fitness={self.fitness:.2f})"

    def decide(self, sensors: Sequence[float]) -> MotorCommand:
        """
        Run the brain on a sensor vector and decode a motor intent.

        Outputs are read as [left wheel, right wheel, jump trigger]. Wheel
        outputs are scaled by force_scale; the jump fires only when its
        output exceeds jump_threshold.

        Raises:
            DimensionMismatch: If the sensor vector does not fit the brain.
        """
        outputs = tuple(self.brain.infer(sensors))
        self.last_action = outputs

        config = self.motor_config
        left, right, trigger = outputs[0], outputs[1], outputs[2]
        jump_force = trigger * config.jump_force if trigger > config.jump_threshold else 0.0

        return MotorCommand(
            left_force=left * config.force_scale,
            right_force=right * config.force_scale,
            jump_force=jump_force,
            outputs=outputs,
        )

    def record_frame(self) -> None:
        """Account for one simulated frame (holding time)."""
        if self.holding:
            self.frames_holding += 1

    def on_resource_pickup(self) -> None:
        """Start carrying a resource. No-op if already carrying one."""
        if not self.holding:
            self.holding = True
            self.resources_collected += 1

    def on_resource_deliver_attempt(self, distance_to_home: float) -> bool:
        """
        Hand in the carried resource.

        Args:
            distance_to_home: Distance from the agent to its home base.

        Returns:
            True if the agent was carrying and is within the delivery
            radius of its home. The delivery counter increases whenever
            a resource was carried.
        """
        if not self.holding:
            return False

        self.holding = False
        self.resources_delivered += 1
        success = distance_to_home < self.fitness_config.delivery_radius
        logger.debug(
            f"Agent {self.id} delivered resource "
            f"(total={self.resources_delivered}, home={success})"
        )
        return success

    def on_resource_stolen(self) -> None:
        """Lose the carried resource without credit."""
        self.holding = False

    def on_collision(self) -> None:
        """Count a physical collision."""
        self.collisions += 1

    def compute_fitness(self, velocity: Vector2 = (0.0, 0.0)) -> float:
        """
        Compute the selection signal from the episode counters.

        fitness = delivery_reward * delivered
                - collision_penalty * collisions
                + holding_reward * frames_holding
                - idle_penalty (if |vx| + |vy| < idle_speed_threshold)

        clamped at zero.

        Args:
            velocity: Agent velocity at evaluation time.

        Returns:
            Non-negative fitness, also stored in self.fitness.
        """
        config = self.fitness_config
        fitness = self.resources_delivered * config.delivery_reward
        fitness += self.frames_holding * config.holding_reward
        fitness -= self.collisions * config.collision_penalty

        if abs(velocity[0]) + abs(velocity[1]) < config.idle_speed_threshold:
            fitness -= config.idle_penalty

        self.fitness = max(0.0, fitness)
        return self.fitness
