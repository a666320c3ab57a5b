"""
Selection strategies for the runner genetic algorithm.

Selection determines which agents survive and reproduce:
- Elite: the top ranked agents are carried over unchanged
- Tournament: draw k candidates at random, the fittest one wins

Both strategies work on any objects exposing a ``fitness`` attribute.
"""
import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar('T')


class TournamentSelection:
    """
    Tournament selection strategy.

    Each tournament draws ``tournament_size`` candidates independently
    and uniformly (with replacement) and keeps the one with the highest
    fitness. Ties go to the candidate drawn first.

    Tournament size controls selection pressure:
    - k=2: Low pressure, more diversity
    - k=7: High pressure, faster convergence

    Example:
        selection = TournamentSelection(tournament_size=3, rng=random.Random(7))
        parent_a, parent_b = selection.select(pool, 2)
    """

    def __init__(
        self,
        tournament_size: int = 3,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize tournament selection.

        Args:
            tournament_size: Number of draws per tournament.
            rng: Random source exposing ``randrange``. Uses a fresh
                 unseeded random.Random if None.
        """
        self.tournament_size = tournament_size
        self.rng = rng or random.Random()

    def run_tournament(self, pool: Sequence[T]) -> T:
        """
        Run a single tournament over a non-empty pool.

        Args:
            pool: Candidates to draw from.

        Returns:
            The fittest of the drawn candidates.
        """
        if not pool:
            raise ValueError("Cannot run a tournament over an empty pool")

        best = None
        for _ in range(self.tournament_size):
            candidate = pool[self.rng.randrange(len(pool))]
            if best is None or candidate.fitness > best.fitness:
                best = candidate
        return best

    def select(self, pool: Sequence[T], num_to_select: int) -> List[T]:
        """
        Select individuals by independent tournaments.

        Args:
            pool: Candidates with fitness.
            num_to_select: Number of tournaments to run.

        Returns:
            List of winners, one per tournament.
        """
        if not pool:
            return []
        return [self.run_tournament(pool) for _ in range(num_to_select)]


class EliteSelection:
    """
    Elitism: preserve the best individuals unchanged.

    The elite bypass crossover and mutation and go directly to the next
    generation. Ranking is a stable sort, so equal fitness keeps the
    incoming order.
    """

    def __init__(self, elite_count: int = 5):
        """
        Initialize elite selection.

        Args:
            elite_count: Number of elite individuals to preserve.
        """
        self.elite_count = elite_count

    def rank(self, population: Sequence[T]) -> List[T]:
        """Stable sort by fitness, best first."""
        return sorted(population, key=lambda ind: ind.fitness, reverse=True)

    def get_elite(self, population: Sequence[T]) -> List[T]:
        """
        Get the elite individuals from a population.

        Args:
            population: Individuals with fitness.

        Returns:
            The top elite_count individuals.
        """
        return self.rank(population)[:self.elite_count]

    def breeding_pool(self, ranked: Sequence[T]) -> List[T]:
        """
        Parents eligible for reproduction: the top 2 * elite_count.

        Args:
            ranked: Individuals already sorted best first.

        Returns:
            The leading slice of ranked.
        """
        return list(ranked[:2 * self.elite_count])
