"""
Population management for the runner genetic algorithm.

Handles the lifecycle of a population of runner agents:
- Initialization (random brains, round-robin spawn points)
- Episode stepping (sense, decide, act for every living agent)
- Evaluation (fitness calculation and stable ranking)
- Breeding (elitism, tournament selection, crossover, mutation)
- Generation advancement and reset

The population manager is the main interface for running evolution.
"""
import logging
import math
import random
from collections import deque
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional, Tuple, Union, TYPE_CHECKING

import numpy as np
import torch

from ..agents import Agent, FitnessConfig, MotorConfig
from ..encoders import BaseEncoder, SensorEncoder
from ..exceptions import DimensionMismatch, InvalidConfiguration, PopulationStateError
from ..networks import PolicyNetwork, make_generator
from .selection import EliteSelection, TournamentSelection

if TYPE_CHECKING:
    from ..simulation.base import Environment, PhysicsBackend

logger = logging.getLogger(__name__)

# One spawn point per home base of the default 800x500 arena
DEFAULT_SPAWN_POINTS = (
    (50.0, 450.0),   # bottom left
    (750.0, 450.0),  # bottom right
    (50.0, 50.0),    # top left
    (750.0, 50.0),   # top right
)


class PopulationState(Enum):
    """Phases of one generation."""
    RUNNING = 'running'
    EVALUATING = 'evaluating'
    BREEDING = 'breeding'
    RESET = 'reset'


@dataclass
class EvolutionConfig:
    """Configuration for an evolution run."""

    # Population
    population_size: int = 50
    elite_count: int = 5

    # Selection
    tournament_size: int = 3

    # Mutation
    mutation_rate: float = 0.1
    mutation_strength: float = 0.3

    # Episode
    episode_length: int = 1800  # 30 seconds at 60 steps per second
    spawn_points: Tuple[Tuple[float, float], ...] = DEFAULT_SPAWN_POINTS

    # Network shape
    input_size: int = 8
    hidden_size: int = 12
    output_size: int = 3

    # Statistics
    history_limit: int = 50
    top_k: int = 5

    # Reproducibility
    seed: Optional[int] = None


@dataclass
class AgentSummary:
    """Per-agent counters exported with generation statistics."""
    id: str = ''
    fitness: float = 0.0
    resources_delivered: int = 0
    resources_collected: int = 0
    collisions: int = 0

    @classmethod
    def from_agent(cls, agent: Agent) -> 'AgentSummary':
        return cls(
            id=agent.id,
            fitness=agent.fitness,
            resources_delivered=agent.resources_delivered,
            resources_collected=agent.resources_collected,
            collisions=agent.collisions,
        )


@dataclass
class GenerationStats:
    """Statistics for a completed generation."""
    generation: int = 0
    best_fitness: float = 0.0
    avg_fitness: float = 0.0
    min_fitness: float = 0.0
    fitness_std: float = 0.0
    best_delivered: int = 0
    total_delivered: int = 0
    top_agents: List[AgentSummary] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GenerationStats':
        data = dict(data)
        data['top_agents'] = [AgentSummary(**a) for a in data.get('top_agents', [])]
        return cls(**data)


def validate_config(config: EvolutionConfig) -> None:
    """
    Check that an evolution configuration is usable.

    Raises:
        InvalidConfiguration: Describing the first invalid parameter.
    """
    if config.population_size < 1:
        raise InvalidConfiguration(
            f"population_size must be at least 1, got {config.population_size}"
        )
    if config.elite_count < 1:
        raise InvalidConfiguration(
            f"elite_count must be at least 1, got {config.elite_count}"
        )
    if config.elite_count > config.population_size:
        raise InvalidConfiguration(
            f"elite_count ({config.elite_count}) cannot exceed "
            f"population_size ({config.population_size})"
        )
    if not math.isfinite(config.mutation_rate) or not 0.0 <= config.mutation_rate <= 1.0:
        raise InvalidConfiguration(
            f"mutation_rate must be in [0, 1], got {config.mutation_rate}"
        )
    if not math.isfinite(config.mutation_strength) or config.mutation_strength < 0.0:
        raise InvalidConfiguration(
            f"mutation_strength must be non-negative, got {config.mutation_strength}"
        )
    if config.tournament_size < 1:
        raise InvalidConfiguration(
            f"tournament_size must be at least 1, got {config.tournament_size}"
        )
    if config.episode_length < 1:
        raise InvalidConfiguration(
            f"episode_length must be at least 1, got {config.episode_length}"
        )
    if config.history_limit < 1:
        raise InvalidConfiguration(
            f"history_limit must be at least 1, got {config.history_limit}"
        )
    if config.top_k < 0:
        raise InvalidConfiguration(f"top_k must be non-negative, got {config.top_k}")
    if not config.spawn_points:
        raise InvalidConfiguration("spawn_points must not be empty")
    if min(config.input_size, config.hidden_size, config.output_size) < 1:
        raise InvalidConfiguration("Network layer sizes must be positive")


class Population:
    """
    Manages a population of evolving runner agents.

    Handles the complete evolutionary cycle:
    1. Step agents through an episode (RUNNING)
    2. Compute fitness and rank (EVALUATING)
    3. Build the next generation (BREEDING)
    4. Swap embodiments and world objects (RESET)
    5. Repeat

    The agent sequence is owned by the population and exposed as a
    tuple. Each generation is built completely before it replaces the
    previous one.

    Example:
        config = EvolutionConfig(population_size=50, seed=42)
        population = Population(config)
        population.attach(physics)

        while True:
            stats = population.step(arena, physics)
            if stats:
                print(f"Gen {stats.generation}: best={stats.best_fitness:.2f}")
    """

    def __init__(
        self,
        config: Optional[EvolutionConfig] = None,
        encoder: Optional[BaseEncoder] = None,
        motor_config: Optional[MotorConfig] = None,
        fitness_config: Optional[FitnessConfig] = None,
        rng: Optional[random.Random] = None,
        generator: Optional[torch.Generator] = None,
    ):
        """
        Initialize the population manager.

        Args:
            config: Evolution configuration.
            encoder: Sensor encoder. Defaults to SensorEncoder().
            motor_config: Output decoding shared by all agents.
            fitness_config: Fitness shaping shared by all agents.
            rng: Random source for tournament draws. Seeded from
                 config.seed if None.
            generator: Random source for network initialization,
                       crossover and mutation. Seeded from config.seed if None.

        Raises:
            InvalidConfiguration: If the configuration is out of range.
            DimensionMismatch: If the encoder does not produce input_size features.
        """
        self.config = config or EvolutionConfig()
        validate_config(self.config)

        self.encoder = encoder or SensorEncoder()
        if self.encoder.input_size != self.config.input_size:
            raise DimensionMismatch(
                f"Encoder produces {self.encoder.input_size} features, "
                f"network expects {self.config.input_size}"
            )

        self.motor_config = motor_config or MotorConfig()
        self.fitness_config = fitness_config or FitnessConfig()

        # Only sources created here are re-seeded by reset()
        self._owns_rng = rng is None
        self._owns_generator = generator is None
        self.rng = rng or random.Random(self.config.seed)
        self.generator = generator or make_generator(self.config.seed)

        # Evolution operators
        self.selection = TournamentSelection(
            tournament_size=self.config.tournament_size,
            rng=self.rng,
        )
        self.elite_selection = EliteSelection(elite_count=self.config.elite_count)

        # Statistics
        self.history: Deque[GenerationStats] = deque(maxlen=self.config.history_limit)
        self.best_fitness = 0.0
        self.average_fitness = 0.0

        # Population state
        self.state = PopulationState.RUNNING
        self.generation = 1
        self.frame = 0
        self._agents: Tuple[Agent, ...] = self._create_initial_agents()

    @property
    def agents(self) -> Tuple[Agent, ...]:
        """The current generation, in list order."""
        return self._agents

    def __len__(self) -> int:
        return len(self._agents)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    def spawn_point(self, index: int) -> Tuple[float, float]:
        """Start position for the agent in slot ``index`` (round-robin)."""
        points = self.config.spawn_points
        return tuple(points[index % len(points)])

    def _new_brain(self) -> PolicyNetwork:
        return PolicyNetwork(
            self.config.input_size,
            self.config.hidden_size,
            self.config.output_size,
            generator=self.generator,
        )

    def _make_agent(
        self,
        agent_id: str,
        index: int,
        brain: PolicyNetwork,
        generation: int,
        origin: str,
        parent_ids: Optional[List[str]] = None,
    ) -> Agent:
        return Agent(
            agent_id,
            home=self.spawn_point(index),
            brain=brain,
            motor_config=self.motor_config,
            fitness_config=self.fitness_config,
            generation=generation,
            origin=origin,
            parent_ids=parent_ids,
        )

    def _create_initial_agents(self) -> Tuple[Agent, ...]:
        return tuple(
            self._make_agent(f"gen{1:04d}_ind_{i:03d}", i, self._new_brain(), 1, 'initial')
            for i in range(self.config.population_size)
        )

    # ------------------------------------------------------------------
    # Embodiment
    # ------------------------------------------------------------------

    def attach(self, physics: 'PhysicsBackend') -> None:
        """Create an embodiment for every agent at its spawn point."""
        for agent in self._agents:
            physics.attach_embodiment(agent.id, agent.home)

    def detach(self, physics: 'PhysicsBackend') -> None:
        """Remove the embodiment of every agent."""
        for agent in self._agents:
            physics.detach_embodiment(agent.id)

    # ------------------------------------------------------------------
    # Episode
    # ------------------------------------------------------------------

    @property
    def progress(self) -> float:
        """Episode completion in percent."""
        return self.frame / self.config.episode_length * 100.0

    @property
    def frames_remaining(self) -> int:
        return max(0, self.config.episode_length - self.frame)

    def step(
        self,
        environment: 'Environment',
        physics: 'PhysicsBackend',
    ) -> Optional[GenerationStats]:
        """
        Advance the episode by one frame.

        Every living agent senses and decides before any command is
        forwarded or any interaction is resolved, so all agents observe
        the same world snapshot. Agents are visited in list order.

        Args:
            environment: World provider used for sensing and interactions.
            physics: Physics collaborator holding the embodiments.

        Returns:
            Statistics of the finished generation if this frame ended the
            episode, else None.

        Raises:
            PopulationStateError: If called while a generation is advancing.
        """
        if self.state is not PopulationState.RUNNING:
            raise PopulationStateError(
                f"step() requires state RUNNING, population is {self.state.value}"
            )

        self.frame += 1

        intents = []
        for agent in self._agents:
            if not agent.alive:
                continue
            kinematics = physics.current_kinematics(agent.id)
            sensors = self.encoder.encode(kinematics, environment, holding=agent.holding)
            intents.append((agent, agent.decide(sensors)))

        for agent, command in intents:
            physics.apply_motor_command(agent.id, command)
            agent.record_frame()

        environment.resolve_interactions(self._agents, physics)

        if self.frame >= self.config.episode_length:
            return self.evolve(environment, physics)
        return None

    # ------------------------------------------------------------------
    # Generation advance
    # ------------------------------------------------------------------

    def evaluate(self, physics: Optional['PhysicsBackend'] = None) -> None:
        """
        Compute every agent's fitness and rank the population.

        The sort is stable: agents with equal fitness keep their previous
        relative order.

        Args:
            physics: Source of each agent's final velocity for the idle
                     penalty. Without it every agent counts as idle.
        """
        for agent in self._agents:
            if physics is not None:
                velocity = physics.current_kinematics(agent.id).velocity
            else:
                velocity = (0.0, 0.0)
            agent.compute_fitness(velocity)

        self._agents = tuple(self.elite_selection.rank(self._agents))

    def breed(self) -> Tuple[Agent, ...]:
        """
        Build the next generation from the current ranking.

        1. The top elite_count brains are deep-copied into new agents.
        2. The remaining slots are filled with children: two tournament
           winners from the top 2 * elite_count agents are crossed over
           and the child is mutated in place.

        Every new agent gets a fresh spawn point (round-robin by slot)
        and zeroed counters. The current generation is not modified.

        Returns:
            The next generation as a tuple.
        """
        config = self.config
        next_generation = self.generation + 1
        ranked = self.elite_selection.rank(self._agents)
        new_agents: List[Agent] = []

        # Preserve elite
        for parent in ranked[:config.elite_count]:
            index = len(new_agents)
            new_agents.append(self._make_agent(
                f"gen{next_generation:04d}_elite_{index:02d}",
                index,
                parent.brain.copy(),
                next_generation,
                'elite',
                [parent.id],
            ))

        # Fill rest with offspring
        pool = self.elite_selection.breeding_pool(ranked)
        while len(new_agents) < config.population_size:
            parent_a, parent_b = self.selection.select(pool, 2)
            child_brain = parent_a.brain.crossover(parent_b.brain, generator=self.generator)
            child_brain.mutate(
                config.mutation_rate,
                config.mutation_strength,
                generator=self.generator,
            )

            index = len(new_agents)
            new_agents.append(self._make_agent(
                f"gen{next_generation:04d}_ind_{index:03d}",
                index,
                child_brain,
                next_generation,
                'offspring',
                [parent_a.id, parent_b.id],
            ))

        return tuple(new_agents)

    def evolve(
        self,
        environment: 'Environment',
        physics: 'PhysicsBackend',
    ) -> GenerationStats:
        """
        Finish the current generation and start the next one.

        Runs EVALUATING -> BREEDING -> RESET -> RUNNING.

        Returns:
            Statistics for the generation that just finished.
        """
        self.state = PopulationState.EVALUATING
        self.evaluate(physics)
        stats = self._record_statistics()

        self.state = PopulationState.BREEDING
        next_agents = self.breed()

        self.state = PopulationState.RESET
        self.detach(physics)
        environment.reset()
        self._agents = next_agents
        self.attach(physics)

        self.frame = 0
        self.generation += 1
        self.state = PopulationState.RUNNING

        logger.info(
            f"Generation {stats.generation} complete: "
            f"best={stats.best_fitness:.2f} avg={stats.avg_fitness:.2f} "
            f"delivered={stats.total_delivered}"
        )
        return stats

    def _record_statistics(self) -> GenerationStats:
        """Summarize the ranked generation and append it to the history."""
        fitnesses = np.array([agent.fitness for agent in self._agents], dtype=np.float64)
        best = self._agents[0]

        stats = GenerationStats(
            generation=self.generation,
            best_fitness=best.fitness,
            avg_fitness=float(fitnesses.mean()),
            min_fitness=float(fitnesses.min()),
            fitness_std=float(fitnesses.std()),
            best_delivered=best.resources_delivered,
            total_delivered=sum(agent.resources_delivered for agent in self._agents),
            top_agents=[
                AgentSummary.from_agent(agent)
                for agent in self._agents[:self.config.top_k]
            ],
        )

        self.best_fitness = stats.best_fitness
        self.average_fitness = stats.avg_fitness
        self.history.append(stats)
        return stats

    def reset(
        self,
        environment: Optional['Environment'] = None,
        physics: Optional['PhysicsBackend'] = None,
    ) -> None:
        """
        Abandon the current run and start again from generation 1.

        In-flight fitness signals and the history are discarded and a
        fresh random population is created. With a fixed seed the random
        sources the population created itself are re-seeded so the new
        run replays the first one. Sources injected through the
        constructor are left as they are.

        Args:
            environment: World to reset, if any.
            physics: Physics collaborator whose embodiments are replaced.
        """
        if physics is not None:
            self.detach(physics)

        if self.config.seed is not None:
            if self._owns_rng:
                self.rng.seed(self.config.seed)
            if self._owns_generator:
                self.generator.manual_seed(self.config.seed)

        self.state = PopulationState.RUNNING
        self.generation = 1
        self.frame = 0
        self.best_fitness = 0.0
        self.average_fitness = 0.0
        self.history.clear()
        self._agents = self._create_initial_agents()

        if environment is not None:
            environment.reset()
        if physics is not None:
            self.attach(physics)

        logger.info("Population reset to generation 1")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_best(self) -> Agent:
        """Get the agent with the highest fitness."""
        return max(self._agents, key=lambda agent: agent.fitness)

    def get_top_n(self, n: int) -> List[Agent]:
        """Get the top n agents by fitness."""
        return self.elite_selection.rank(self._agents)[:n]

    def get_statistics(self) -> Dict[str, Any]:
        """
        Read-only snapshot for UI or telemetry consumers.

        Fitness figures refer to the last completed generation; counters
        and progress refer to the episode in flight.

        Returns:
            Dictionary with generation, progress, fitness summary, top
            agent summaries, total deliveries and frames remaining.
        """
        return {
            'generation': self.generation,
            'state': self.state.value,
            'progress': round(self.progress, 1),
            'best_fitness': self.best_fitness,
            'average_fitness': self.average_fitness,
            'top_agents': [
                asdict(AgentSummary.from_agent(agent))
                for agent in self._agents[:self.config.top_k]
            ],
            'total_delivered': sum(agent.resources_delivered for agent in self._agents),
            'frames_remaining': self.frames_remaining,
        }

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save_checkpoint(self, path: Union[str, Path]) -> Path:
        """
        Save the population to a checkpoint file.

        Args:
            path: Destination file.

        Returns:
            Path to saved checkpoint.
        """
        filepath = Path(path)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        checkpoint = {
            'generation': self.generation,
            'config': asdict(self.config),
            'agents': [
                {
                    'id': agent.id,
                    'fitness': agent.fitness,
                    'brain': agent.brain.state_dict(),
                }
                for agent in self._agents
            ],
            'history': [stats.to_dict() for stats in self.history],
            'best_fitness': self.best_fitness,
            'average_fitness': self.average_fitness,
        }

        torch.save(checkpoint, filepath)
        return filepath

    def load_checkpoint(
        self,
        path: Union[str, Path],
        physics: Optional['PhysicsBackend'] = None,
    ) -> None:
        """
        Restore a population saved with save_checkpoint.

        The saved brains start a fresh episode of the saved generation;
        episode counters are not restored. The whole checkpoint is
        validated and the new agents are built before anything on the
        population changes, so a rejected checkpoint leaves the current
        run, including its embodiments, untouched.

        Args:
            path: Checkpoint file.
            physics: Physics collaborator whose embodiments are replaced.

        Raises:
            InvalidConfiguration: If the stored configuration is invalid,
                does not fit the encoder, or disagrees with the stored
                brains.
        """
        checkpoint = torch.load(path, weights_only=True)

        stored = dict(checkpoint['config'])
        stored['spawn_points'] = tuple(tuple(p) for p in stored['spawn_points'])
        config = replace(self.config, **stored)
        validate_config(config)

        if config.input_size != self.encoder.input_size:
            raise InvalidConfiguration(
                f"Checkpoint networks expect {config.input_size} inputs, "
                f"encoder produces {self.encoder.input_size}"
            )

        saved_agents = checkpoint['agents']
        if len(saved_agents) != config.population_size:
            raise InvalidConfiguration(
                f"Checkpoint holds {len(saved_agents)} agents, "
                f"population_size is {config.population_size}"
            )

        generation = checkpoint['generation']
        points = config.spawn_points
        agents = []
        for index, data in enumerate(saved_agents):
            brain = PolicyNetwork(
                config.input_size, config.hidden_size, config.output_size,
                randomize=False,
            )
            try:
                brain.load_state_dict(data['brain'])
            except RuntimeError as e:
                raise InvalidConfiguration(
                    f"Checkpoint brain {index} does not match shape {brain.shape}: {e}"
                ) from e
            if not torch.isfinite(brain.genes()).all():
                raise InvalidConfiguration(f"Checkpoint brain {index} has non-finite genes")

            agents.append(Agent(
                f"gen{generation:04d}_ind_{index:03d}",
                home=tuple(points[index % len(points)]),
                brain=brain,
                motor_config=self.motor_config,
                fitness_config=self.fitness_config,
                generation=generation,
                origin='checkpoint',
                parent_ids=[data['id']],
            ))

        history = deque(
            (GenerationStats.from_dict(s) for s in checkpoint['history']),
            maxlen=config.history_limit,
        )

        if physics is not None:
            self.detach(physics)

        self.config = config
        self.selection.tournament_size = config.tournament_size
        self.elite_selection.elite_count = config.elite_count
        self.history = history
        self.best_fitness = checkpoint.get('best_fitness', 0.0)
        self.average_fitness = checkpoint.get('average_fitness', 0.0)
        self.generation = generation
        self.frame = 0
        self.state = PopulationState.RUNNING
        self._agents = tuple(agents)

        if physics is not None:
            self.attach(physics)
