"""
Headless simulation loop.

Wires a Population to the reference Arena and KinematicWorld and drives
them one frame at a time: physics integration, world update, then the
population step (sense, decide, act, resolve).
"""
import logging
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

from ..agents import FitnessConfig, MotorConfig
from ..encoders import BaseEncoder
from ..evolution import EvolutionConfig, GenerationStats, Population
from .arena import Arena, ArenaConfig
from .bodies import BodyConfig, KinematicWorld

logger = logging.getLogger(__name__)


class Simulation:
    """
    Runs evolution inside the reference arena without any rendering.

    Agents spawn at the arena's home bases, round-robin by slot.

    Example:
        sim = Simulation(EvolutionConfig(seed=1), ArenaConfig(seed=1))
        for stats in sim.run_generations(10):
            print(stats.generation, stats.best_fitness)
    """

    def __init__(
        self,
        evolution_config: Optional[EvolutionConfig] = None,
        arena_config: Optional[ArenaConfig] = None,
        body_config: Optional[BodyConfig] = None,
        encoder: Optional[BaseEncoder] = None,
        motor_config: Optional[MotorConfig] = None,
        fitness_config: Optional[FitnessConfig] = None,
    ):
        self.arena = Arena(arena_config)
        self.physics = KinematicWorld(*self.arena.world_bounds(), config=body_config)

        config = replace(
            evolution_config or EvolutionConfig(),
            spawn_points=self.arena.base_positions,
        )
        self.population = Population(
            config,
            encoder=encoder,
            motor_config=motor_config,
            fitness_config=fitness_config,
        )
        self.population.attach(self.physics)

    @property
    def generation(self) -> int:
        return self.population.generation

    def tick(self) -> Optional[GenerationStats]:
        """
        Advance one frame.

        Returns:
            Statistics if the frame completed a generation, else None.
        """
        self.physics.advance()
        self.arena.update()
        return self.population.step(self.arena, self.physics)

    def run_generation(self) -> GenerationStats:
        """Tick until the current episode ends."""
        while True:
            stats = self.tick()
            if stats is not None:
                return stats

    def run_generations(
        self,
        generations: int,
        progress_callback: Optional[Callable[[int, GenerationStats], None]] = None,
    ) -> List[GenerationStats]:
        """
        Run several full generations.

        Args:
            generations: Number of generations to complete.
            progress_callback: Called with (generation, stats) each generation.

        Returns:
            List of generation statistics.
        """
        all_stats = []
        for _ in range(generations):
            stats = self.run_generation()
            if progress_callback:
                progress_callback(stats.generation, stats)
            all_stats.append(stats)
        return all_stats

    def reset(self) -> None:
        """Abandon the run and restart from generation 1."""
        self.population.reset(self.arena, self.physics)
        logger.info("Simulation reset")

    def get_statistics(self) -> Dict[str, Any]:
        return self.population.get_statistics()
