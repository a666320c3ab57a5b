"""
Tests for evolution plots.
"""
import pytest

from resource_runners.evolution import GenerationStats
from resource_runners.visualization import plot_delivery_history, plot_fitness_history


@pytest.fixture
def history():
    return [
        GenerationStats(generation=1, best_fitness=12.0, avg_fitness=3.0, min_fitness=0.0,
                        best_delivered=0, total_delivered=0),
        GenerationStats(generation=2, best_fitness=105.0, avg_fitness=20.0, min_fitness=0.0,
                        best_delivered=1, total_delivered=3),
        GenerationStats(generation=3, best_fitness=210.5, avg_fitness=48.2, min_fitness=1.0,
                        best_delivered=2, total_delivered=9),
    ]


class TestPlotFitnessHistory:

    def test_saves_figure(self, history, tmp_path):
        path = tmp_path / 'fitness.png'
        result = plot_fitness_history(history, save_path=str(path))

        assert result == str(path)
        assert path.exists()
        assert path.stat().st_size > 0

    def test_accepts_dicts(self, history, tmp_path):
        path = tmp_path / 'fitness.png'
        plot_fitness_history([s.to_dict() for s in history], save_path=str(path), show_range=False)
        assert path.exists()

    def test_empty_history(self, tmp_path):
        assert plot_fitness_history([], save_path=str(tmp_path / 'x.png')) is None
        assert not (tmp_path / 'x.png').exists()

    def test_without_path(self, history):
        assert plot_fitness_history(history) is None


class TestPlotDeliveryHistory:

    def test_saves_figure(self, history, tmp_path):
        path = tmp_path / 'deliveries.png'
        assert plot_delivery_history(history, save_path=str(path)) == str(path)
        assert path.exists()

    def test_empty_history(self):
        assert plot_delivery_history([]) is None
