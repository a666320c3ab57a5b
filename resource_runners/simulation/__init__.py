"""
Simulation collaborators for headless evolution runs.

This module provides:
- Environment / PhysicsBackend: interfaces the population talks to
- Arena: reference world with obstacles, bases and respawning resources
- KinematicWorld: point-mass stand-in for a physics engine
- Simulation: frame loop tying the pieces together
"""
from .base import Environment, PhysicsBackend
from .arena import Arena, ArenaConfig, Resource
from .bodies import BodyConfig, KinematicWorld
from .runner import Simulation

__all__ = [
    'Arena',
    'ArenaConfig',
    'BodyConfig',
    'Environment',
    'KinematicWorld',
    'PhysicsBackend',
    'Resource',
    'Simulation',
]
