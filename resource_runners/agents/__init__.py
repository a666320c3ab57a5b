"""
Runner agents: brains, motor decoding and fitness bookkeeping.
"""
from .agent import Agent, FitnessConfig, MotorCommand, MotorConfig

__all__ = [
    'Agent',
    'FitnessConfig',
    'MotorCommand',
    'MotorConfig',
]
