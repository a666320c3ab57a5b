"""
Local sensor encoder for resource runners.

Builds the 8-feature perception vector each agent's policy network sees:
- Features 0-3: ray distances at -45, 0, +45 and +90 degrees from the
  agent's heading, divided by the ray length (so in [0, 1])
- Features 4-5: velocity components divided by a fixed scale
- Features 6-7: unit vector toward the nearest uncollected resource,
  or zeros while carrying one (or when none exist)
"""
import math
from dataclasses import dataclass
from typing import Iterable, List, Tuple

import numpy as np

from .base import BaseEncoder, EnvironmentView, Kinematics, Vector2


@dataclass
class SensorConfig:
    """Sensor geometry and normalization constants."""
    ray_angles: Tuple[float, ...] = (-math.pi / 4, 0.0, math.pi / 4, math.pi / 2)
    ray_length: float = 80.0
    velocity_scale: float = 10.0


def cast_ray(
    origin: Vector2,
    angle: float,
    max_length: float,
    bounds: Tuple[float, float],
    obstacles: Iterable[Vector2],
    step: float = 5.0,
    obstacle_radius: float = 20.0,
) -> float:
    """
    March a ray in fixed increments until it leaves the world or nears an obstacle.

    Obstacles are treated as discs of ``obstacle_radius`` around their
    position. Sample points are tested at step, 2*step, ... up to max_length.

    Args:
        origin: Ray start.
        angle: Absolute direction in radians.
        max_length: Maximum distance reported.
        bounds: World (width, height); the world spans [0, width] x [0, height].
        obstacles: Obstacle centre positions.
        step: Distance between samples.
        obstacle_radius: Proximity radius that counts as a hit.

    Returns:
        Distance of the first sample that hits, else max_length.
    """
    if step <= 0:
        raise ValueError(f"Ray step must be positive, got {step}")

    width, height = bounds
    dir_x = math.cos(angle)
    dir_y = math.sin(angle)
    radius_sq = obstacle_radius * obstacle_radius
    obstacles = list(obstacles)

    for i in range(1, int(max_length // step) + 1):
        distance = i * step
        x = origin[0] + dir_x * distance
        y = origin[1] + dir_y * distance

        if x < 0 or x > width or y < 0 or y > height:
            return distance

        for ox, oy in obstacles:
            if (x - ox) ** 2 + (y - oy) ** 2 < radius_sq:
                return distance

    return float(max_length)


class SensorEncoder(BaseEncoder):
    """
    Encodes rays, velocity and resource direction for one agent.

    Encoding is a pure function of the agent's kinematics and the world
    snapshot; nothing is mutated.

    Example:
        encoder = SensorEncoder()
        features = encoder.encode(kinematics, arena, holding=agent.holding)
        # features is a numpy array of shape (8,)
    """

    def __init__(self, config: SensorConfig = None):
        self.config = config or SensorConfig()
        self.input_size = len(self.config.ray_angles) + 4

    def encode(
        self,
        kinematics: Kinematics,
        view: EnvironmentView,
        holding: bool = False,
    ) -> np.ndarray:
        """
        Encode an agent's local perception.

        Args:
            kinematics: Position, velocity and heading of the agent.
            view: World queries (ray casts, resource lookup).
            holding: Whether the agent carries a resource.

        Returns:
            Float64 array of shape (input_size,).
        """
        config = self.config
        features = np.zeros(self.input_size, dtype=np.float64)

        for i, offset in enumerate(config.ray_angles):
            distance = view.ray_cast(
                kinematics.position,
                kinematics.heading + offset,
                config.ray_length,
            )
            features[i] = distance / config.ray_length

        index = len(config.ray_angles)
        features[index] = kinematics.velocity[0] / config.velocity_scale
        features[index + 1] = kinematics.velocity[1] / config.velocity_scale

        target = view.nearest_uncollected_resource(
            kinematics.position, exclude_if_holding=holding,
        )
        if target is not None and not holding:
            dx = target[0] - kinematics.position[0]
            dy = target[1] - kinematics.position[1]
            distance = math.hypot(dx, dy)
            # Standing on the resource leaves the direction at zero
            if distance > 0:
                features[index + 2] = dx / distance
                features[index + 3] = dy / distance

        return features

    def get_feature_names(self) -> List[str]:
        """
        Return human-readable names for every feature.

        Returns:
            List of input_size feature names.
        """
        names = [
            f"ray_{round(math.degrees(angle))}"
            for angle in self.config.ray_angles
        ]
        names.extend([
            "velocity_x",
            "velocity_y",
            "resource_dir_x",
            "resource_dir_y",
        ])
        return names
