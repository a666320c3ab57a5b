"""
Neuroevolution of runner policies.

Advances a fixed-size population of agents generation by generation:
- Elitism: the best brains are copied unchanged into the next generation
- Tournament selection over the top ranked agents
- Uniform crossover and uniform-noise mutation of brain weights

Example usage:
    from resource_runners.evolution import Population, EvolutionConfig
    from resource_runners.simulation import Arena, KinematicWorld

    arena = Arena()
    physics = KinematicWorld(*arena.world_bounds())

    population = Population(EvolutionConfig(population_size=50, seed=1))
    population.attach(physics)

    while population.generation <= 100:
        physics.advance()
        arena.update()
        stats = population.step(arena, physics)
        if stats:
            print(f"Gen {stats.generation}: best={stats.best_fitness:.2f}")
"""
from .selection import (
    EliteSelection,
    TournamentSelection,
)
from .population import (
    AgentSummary,
    EvolutionConfig,
    GenerationStats,
    Population,
    PopulationState,
    validate_config,
)

__all__ = [
    # Selection
    'EliteSelection',
    'TournamentSelection',

    # Population management
    'AgentSummary',
    'EvolutionConfig',
    'GenerationStats',
    'Population',
    'PopulationState',
    'validate_config',
]
