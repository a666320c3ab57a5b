"""
Sensor encoders for runner perception.

Encoders convert an agent's kinematic state and a read-only world view
into the fixed-length vector consumed by its policy network.
"""
from .base import BaseEncoder, EnvironmentView, Kinematics
from .sensors import SensorConfig, SensorEncoder, cast_ray

__all__ = [
    'BaseEncoder',
    'EnvironmentView',
    'Kinematics',
    'SensorConfig',
    'SensorEncoder',
    'cast_ray',
]
