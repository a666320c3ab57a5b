"""
Command line entry point for headless evolution runs.

Usage:
    resource-runners [--generations 20] [--population-size 50] [--seed 7]
                     [--save-best best.pt] [--checkpoint pop.pt] [--plot fitness.png]

Evolves runner policies in the reference arena and prints one summary
line per generation.
"""
import argparse
import logging
import sys
from typing import List, Optional

import torch

from .evolution import EvolutionConfig, GenerationStats
from .exceptions import RunnersError
from .simulation import ArenaConfig, Simulation
from .visualization import plot_fitness_history


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--generations',
        type=int,
        default=20,
        help='Number of generations to run (default: 20)',
    )
    parser.add_argument(
        '--population-size',
        type=int,
        default=50,
        help='Agents per generation (default: 50)',
    )
    parser.add_argument(
        '--elite-count',
        type=int,
        default=5,
        help='Brains copied unchanged into the next generation (default: 5)',
    )
    parser.add_argument(
        '--tournament-size',
        type=int,
        default=3,
        help='Candidates drawn per tournament (default: 3)',
    )
    parser.add_argument(
        '--mutation-rate',
        type=float,
        default=0.1,
        help='Per-gene mutation probability (default: 0.1)',
    )
    parser.add_argument(
        '--mutation-strength',
        type=float,
        default=0.3,
        help='Maximum perturbation per mutated gene (default: 0.3)',
    )
    parser.add_argument(
        '--episode-length',
        type=int,
        default=1800,
        help='Frames per generation (default: 1800)',
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Seed for evolution and resource placement',
    )
    parser.add_argument(
        '--resume',
        type=str,
        default=None,
        help='Population checkpoint to start from',
    )
    parser.add_argument(
        '--checkpoint',
        type=str,
        default=None,
        help='Write a population checkpoint here when done',
    )
    parser.add_argument(
        '--save-best',
        type=str,
        default=None,
        help='Write the best brain state dict here when done',
    )
    parser.add_argument(
        '--plot',
        type=str,
        default=None,
        help='Write a fitness-over-generations figure here when done',
    )
    parser.add_argument(
        '--log-level',
        type=str,
        default='WARNING',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging verbosity (default: WARNING)',
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='resource-runners',
        description='Evolve resource runner policies with a genetic algorithm',
    )
    add_arguments(parser)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    options = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, options.log_level),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    config = EvolutionConfig(
        population_size=options.population_size,
        elite_count=options.elite_count,
        tournament_size=options.tournament_size,
        mutation_rate=options.mutation_rate,
        mutation_strength=options.mutation_strength,
        episode_length=options.episode_length,
        seed=options.seed,
    )

    try:
        sim = Simulation(config, ArenaConfig(seed=options.seed))
        if options.resume:
            sim.population.load_checkpoint(options.resume, physics=sim.physics)
    except RunnersError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    print(
        f"Evolving {sim.population.config.population_size} runners "
        f"from generation {sim.generation} for {options.generations} generations"
    )

    def report(generation: int, stats: GenerationStats) -> None:
        print(
            f"Gen {generation}: best={stats.best_fitness:.2f} "
            f"avg={stats.avg_fitness:.2f} delivered={stats.total_delivered}"
        )

    try:
        history = sim.run_generations(options.generations, progress_callback=report)
    except RunnersError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if options.checkpoint:
        path = sim.population.save_checkpoint(options.checkpoint)
        print(f"Checkpoint saved to {path}")

    if options.save_best:
        # Slot 0 of a fresh generation holds the copy of the previous best brain
        torch.save(sim.population.agents[0].brain.state_dict(), options.save_best)
        print(f"Best brain saved to {options.save_best}")

    if options.plot and history:
        plot_fitness_history(history, save_path=options.plot)
        print(f"Fitness plot saved to {options.plot}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
