"""
Collaborator interfaces used by the population.

The population never touches bodies or world objects directly. It talks
to two collaborators:
- Environment: world queries for sensing, interaction resolution and
  per-episode reset of transient objects
- PhysicsBackend: embodiments keyed by agent id
"""
from abc import ABC, abstractmethod
from typing import Sequence, Tuple, TYPE_CHECKING

from ..encoders.base import EnvironmentView, Kinematics

if TYPE_CHECKING:
    from ..agents import Agent, MotorCommand


class PhysicsBackend(ABC):
    """
    Physics collaborator interface.

    Embodiments are looked up by agent id; the backend owns the table and
    agents hold no reference to their bodies.
    """

    @abstractmethod
    def attach_embodiment(self, agent_id: str, start_position: Tuple[float, float]) -> None:
        """Create a body for an agent at its start position."""

    @abstractmethod
    def detach_embodiment(self, agent_id: str) -> None:
        """Remove an agent's body."""

    @abstractmethod
    def apply_motor_command(self, agent_id: str, command: 'MotorCommand') -> None:
        """Apply (or buffer) a motor intent for the agent's body."""

    @abstractmethod
    def current_kinematics(self, agent_id: str) -> Kinematics:
        """Return position, velocity and heading of the agent's body."""


class Environment(EnvironmentView):
    """
    World provider interface.

    Extends the read-only EnvironmentView with the two mutating hooks the
    population calls: interaction resolution after all agents decided,
    and reset between generations.
    """

    @abstractmethod
    def resolve_interactions(
        self,
        agents: Sequence['Agent'],
        physics: PhysicsBackend,
    ) -> None:
        """
        Resolve pickups, deliveries and contacts for one step.

        Agents are visited in list order; order-dependent outcomes (such
        as two agents reaching one resource) favour the earlier agent.
        Outcomes are reported through the agents' event methods.
        """

    @abstractmethod
    def reset(self) -> None:
        """Discard transient per-episode objects and create fresh ones."""
