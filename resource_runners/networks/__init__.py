"""
Policy network infrastructure for evolved runners.

This module provides:
- PolicyNetwork: fixed 2-layer tanh controller with genetic operators
- make_generator: seedable random source for reproducible evolution
"""
from .policy import PolicyNetwork, make_generator, xavier_bound

__all__ = [
    'PolicyNetwork',
    'make_generator',
    'xavier_bound',
]
