"""
Evolution visualization utilities.

Generate figures for an evolution run:
- Fitness over generations
- Resources delivered over generations
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from .evolution import GenerationStats

StatsLike = Union[GenerationStats, Dict[str, Any]]


def _as_dicts(stats_history: Sequence[StatsLike]) -> List[Dict[str, Any]]:
    return [
        s.to_dict() if isinstance(s, GenerationStats) else dict(s)
        for s in stats_history
    ]


def plot_fitness_history(
    stats_history: Sequence[StatsLike],
    save_path: Optional[str] = None,
    show_range: bool = True,
    figsize: Tuple[int, int] = (12, 6),
) -> Optional[str]:
    """
    Plot fitness progression over generations.

    Shows best and average fitness per generation, optionally with the
    min-best range shaded.

    Args:
        stats_history: GenerationStats objects or their dict form.
        save_path: Path to save figure.
        show_range: If True, show min-max range as shaded area.
        figsize: Figure size.

    Returns:
        Path to saved figure, or None if nothing was saved.
    """
    if not stats_history:
        return None

    history = _as_dicts(stats_history)
    generations = [s.get('generation', i) for i, s in enumerate(history)]
    best = [s.get('best_fitness', 0) for s in history]
    avg = [s.get('avg_fitness', 0) for s in history]
    min_fit = [s.get('min_fitness', 0) for s in history]

    fig, ax = plt.subplots(figsize=figsize)

    ax.plot(generations, best, 'g-', linewidth=2, label='Best')
    ax.plot(generations, avg, 'b-', linewidth=2, label='Average')

    if show_range:
        ax.fill_between(
            generations, min_fit, best,
            alpha=0.2, color='gray',
            label='Range'
        )

    ax.set_xlabel('Generation')
    ax.set_ylabel('Fitness')
    ax.set_title('Fitness Over Generations')
    ax.legend()
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        return save_path

    plt.close(fig)
    return None


def plot_delivery_history(
    stats_history: Sequence[StatsLike],
    save_path: Optional[str] = None,
    figsize: Tuple[int, int] = (10, 6),
) -> Optional[str]:
    """
    Plot resources delivered per generation.

    Bars show the population total, the line shows the best agent.

    Args:
        stats_history: GenerationStats objects or their dict form.
        save_path: Path to save figure.
        figsize: Figure size.

    Returns:
        Path to saved figure, or None if nothing was saved.
    """
    if not stats_history:
        return None

    history = _as_dicts(stats_history)
    generations = [s.get('generation', i) for i, s in enumerate(history)]
    totals = [s.get('total_delivered', 0) for s in history]
    best = [s.get('best_delivered', 0) for s in history]

    fig, ax = plt.subplots(figsize=figsize)

    ax.bar(generations, totals, color='#27ae60', alpha=0.6, label='Population total')
    ax.plot(generations, best, 'k.-', linewidth=1.5, label='Best agent')

    ax.set_xlabel('Generation')
    ax.set_ylabel('Resources delivered')
    ax.set_title('Deliveries Over Generations')
    ax.legend()
    ax.grid(True, alpha=0.3, axis='y')

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        return save_path

    plt.close(fig)
    return None
