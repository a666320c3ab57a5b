"""
Base abstractions for sensor encoding.

Encoders transform an agent's physical state plus a read-only view of
the world into fixed-size numerical feature vectors suitable for
policy network input.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

Vector2 = Tuple[float, float]


@dataclass(frozen=True)
class Kinematics:
    """Kinematic state of one embodied agent, as reported by physics."""
    position: Vector2 = (0.0, 0.0)
    velocity: Vector2 = (0.0, 0.0)
    heading: float = 0.0  # radians

    @property
    def speed(self) -> float:
        """Total instantaneous speed as |vx| + |vy|."""
        return abs(self.velocity[0]) + abs(self.velocity[1])


class EnvironmentView(ABC):
    """
    Read-only queries an encoder may make against the world.

    Implementations must not mutate the world from these methods: all
    agents in a step sense the same snapshot.
    """

    @abstractmethod
    def ray_cast(self, origin: Vector2, angle: float, max_length: float) -> float:
        """
        Distance along a ray to the first boundary or obstacle.

        Args:
            origin: Ray start in world coordinates.
            angle: Absolute ray direction in radians.
            max_length: Longest distance to report.

        Returns:
            Hit distance, or max_length if nothing is hit.
        """

    @abstractmethod
    def nearest_uncollected_resource(
        self,
        position: Vector2,
        exclude_if_holding: bool = False,
    ) -> Optional[Vector2]:
        """
        Position of the closest resource still available for pickup.

        Args:
            position: Query point.
            exclude_if_holding: If True the caller is already carrying a
                                resource and no target is returned.

        Returns:
            Resource position, or None if there is none.
        """

    @abstractmethod
    def world_bounds(self) -> Tuple[float, float]:
        """Return the (width, height) of the axis-aligned world."""


class BaseEncoder(ABC):
    """
    Abstract base class for sensor encoders.

    Attributes:
        input_size: The size of the output feature vector.

    Example:
        encoder = SensorEncoder()
        features = encoder.encode(kinematics, arena, holding=False)
    """

    input_size: int = 0

    @abstractmethod
    def encode(
        self,
        kinematics: Kinematics,
        view: EnvironmentView,
        holding: bool = False,
    ) -> np.ndarray:
        """
        Encode one agent's perception into a feature vector.

        Args:
            kinematics: The agent's current physical state.
            view: Read-only world queries.
            holding: Whether the agent currently carries a resource.

        Returns:
            A numpy array of shape (input_size,).
        """

    @abstractmethod
    def get_feature_names(self) -> List[str]:
        """
        Return human-readable names for each feature.

        Returns:
            List of feature names, length equal to input_size.
        """

    def describe(self) -> Dict[str, Any]:
        """
        Return a description of this encoder.

        Returns:
            Dictionary with encoder metadata.
        """
        return {
            'input_size': self.input_size,
            'feature_names': self.get_feature_names(),
        }
