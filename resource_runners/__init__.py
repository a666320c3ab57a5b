"""
Resource runners: neuroevolution of simple control policies.

A population of agents, each driven by a small fixed-topology tanh
network, collects resources in a simulated arena. Policies improve
through elitism, tournament selection, uniform crossover and mutation.
"""
from .agents import Agent, FitnessConfig, MotorCommand, MotorConfig
from .encoders import Kinematics, SensorConfig, SensorEncoder
from .evolution import EvolutionConfig, GenerationStats, Population, PopulationState
from .exceptions import (
    DimensionMismatch,
    InvalidConfiguration,
    PopulationStateError,
    RunnersError,
)
from .networks import PolicyNetwork, make_generator

__version__ = '0.1.0'

__all__ = [
    'Agent',
    'DimensionMismatch',
    'EvolutionConfig',
    'FitnessConfig',
    'GenerationStats',
    'InvalidConfiguration',
    'Kinematics',
    'MotorCommand',
    'MotorConfig',
    'PolicyNetwork',
    'Population',
    'PopulationState',
    'PopulationStateError',
    'RunnersError',
    'SensorConfig',
    'SensorEncoder',
    'make_generator',
]
