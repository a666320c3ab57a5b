"""
Tests for runner agents.

Tests Agent for:
- Motor decoding of network outputs
- Resource event bookkeeping
- Fitness computation and clamping
"""
import math

import pytest
import torch

from resource_runners.agents import Agent, FitnessConfig, MotorCommand, MotorConfig
from resource_runners.exceptions import DimensionMismatch
from resource_runners.networks import PolicyNetwork


def _brain_with_outputs(left: float, right: float, trigger: float) -> PolicyNetwork:
    """A zero network whose outputs are tanh of the given biases."""
    brain = PolicyNetwork(randomize=False)
    with torch.no_grad():
        brain.bias_output.copy_(torch.tensor([left, right, trigger], dtype=torch.float64))
    return brain


class TestAgentInit:
    """Tests for agent construction."""

    def test_fresh_counters(self, generator):
        agent = Agent('gen0001_ind_000', home=(50, 450), generator=generator)

        assert agent.fitness == 0.0
        assert agent.resources_collected == 0
        assert agent.resources_delivered == 0
        assert agent.frames_holding == 0
        assert agent.collisions == 0
        assert agent.alive
        assert not agent.holding
        assert agent.last_action == (0.0, 0.0, 0.0)

    def test_default_brain(self, generator):
        agent = Agent('a', home=(0, 0), generator=generator)
        assert isinstance(agent.brain, PolicyNetwork)
        assert agent.brain.shape == (8, 12, 3)

    def test_home_is_float_tuple(self):
        agent = Agent('a', home=[50, 450])
        assert agent.home == (50.0, 450.0)

    def test_lineage(self):
        agent = Agent('b', home=(0, 0), generation=3, origin='offspring', parent_ids=['x', 'y'])
        assert agent.generation == 3
        assert agent.origin == 'offspring'
        assert agent.parent_ids == ['x', 'y']


class TestAgentDecide:
    """Tests for motor decoding."""

    def test_forces_scaled(self):
        """Test wheel outputs are multiplied by the force scale."""
        agent = Agent('a', home=(0, 0), brain=_brain_with_outputs(0.5, -0.5, 0.0))
        command = agent.decide([0.0] * 8)

        assert isinstance(command, MotorCommand)
        assert command.left_force == pytest.approx(math.tanh(0.5) * 0.01)
        assert command.right_force == pytest.approx(-math.tanh(0.5) * 0.01)

    def test_jump_fires_above_threshold(self):
        """Test a trigger above 0.5 jumps with force trigger * 0.003."""
        agent = Agent('a', home=(0, 0), brain=_brain_with_outputs(0.0, 0.0, 0.9))
        command = agent.decide([0.0] * 8)

        assert command.jump
        assert command.jump_force == pytest.approx(math.tanh(0.9) * 0.003)

    def test_jump_idle_below_threshold(self):
        """Test a trigger at or below 0.5 does not jump."""
        agent = Agent('a', home=(0, 0), brain=_brain_with_outputs(0.0, 0.0, 0.3))
        command = agent.decide([0.0] * 8)

        assert not command.jump
        assert command.jump_force == 0.0

    def test_custom_motor_config(self):
        """Test motor constants are configurable."""
        config = MotorConfig(force_scale=1.0, jump_threshold=0.0, jump_force=2.0)
        agent = Agent('a', home=(0, 0), brain=_brain_with_outputs(0.2, 0.2, 0.2), motor_config=config)
        command = agent.decide([0.0] * 8)

        assert command.left_force == pytest.approx(math.tanh(0.2))
        assert command.jump_force == pytest.approx(math.tanh(0.2) * 2.0)

    def test_last_action_recorded(self):
        """Test raw outputs are kept on the agent and the command."""
        agent = Agent('a', home=(0, 0), brain=_brain_with_outputs(0.1, 0.2, 0.3))
        command = agent.decide([0.0] * 8)

        assert agent.last_action == command.outputs
        assert agent.last_action == pytest.approx((math.tanh(0.1), math.tanh(0.2), math.tanh(0.3)))

    def test_wrong_sensor_length_raises(self, generator):
        """Test a short sensor vector is rejected."""
        agent = Agent('a', home=(0, 0), generator=generator)
        with pytest.raises(DimensionMismatch):
            agent.decide([0.0] * 7)


class TestAgentEvents:
    """Tests for resource and collision events."""

    @pytest.fixture
    def agent(self):
        return Agent('a', home=(50, 450), brain=PolicyNetwork(randomize=False))

    def test_pickup(self, agent):
        agent.on_resource_pickup()
        assert agent.holding
        assert agent.resources_collected == 1

    def test_pickup_while_holding_is_noop(self, agent):
        agent.on_resource_pickup()
        agent.on_resource_pickup()
        assert agent.resources_collected == 1

    def test_deliver_at_home(self, agent):
        agent.on_resource_pickup()
        assert agent.on_resource_deliver_attempt(10.0) is True
        assert not agent.holding
        assert agent.resources_delivered == 1

    def test_deliver_away_from_home_still_counts(self, agent):
        """Test the counter increases whenever a carried resource is handed in."""
        agent.on_resource_pickup()
        assert agent.on_resource_deliver_attempt(500.0) is False
        assert not agent.holding
        assert agent.resources_delivered == 1

    def test_deliver_without_resource(self, agent):
        assert agent.on_resource_deliver_attempt(0.0) is False
        assert agent.resources_delivered == 0

    def test_stolen(self, agent):
        agent.on_resource_pickup()
        agent.on_resource_stolen()
        assert not agent.holding
        assert agent.resources_collected == 1
        assert agent.resources_delivered == 0

    def test_collision(self, agent):
        agent.on_collision()
        agent.on_collision()
        assert agent.collisions == 2

    def test_record_frame_only_counts_holding(self, agent):
        agent.record_frame()
        agent.on_resource_pickup()
        agent.record_frame()
        agent.record_frame()
        assert agent.frames_holding == 2


class TestAgentFitness:
    """Tests for fitness computation."""

    @pytest.fixture
    def agent(self):
        return Agent('a', home=(50, 450), brain=PolicyNetwork(randomize=False))

    def test_delivery_scenario(self, agent):
        """Test 2 deliveries, 50 frames holding, stationary: 204."""
        agent.resources_delivered = 2
        agent.frames_holding = 50

        assert agent.compute_fitness((0.0, 0.0)) == pytest.approx(204.0)
        assert agent.fitness == pytest.approx(204.0)

    def test_moving_agent_not_penalized(self, agent):
        agent.resources_delivered = 1
        assert agent.compute_fitness((0.05, 0.05)) == pytest.approx(100.0)

    def test_idle_threshold_uses_manhattan_speed(self, agent):
        agent.resources_delivered = 1
        assert agent.compute_fitness((0.04, -0.04)) == pytest.approx(99.0)

    def test_collision_penalty(self, agent):
        agent.resources_delivered = 1
        agent.collisions = 3
        assert agent.compute_fitness((1.0, 0.0)) == pytest.approx(85.0)

    def test_clamped_at_zero(self, agent):
        """Test fitness is never negative."""
        agent.collisions = 10
        assert agent.compute_fitness((0.0, 0.0)) == 0.0

    def test_idle_agent_without_events_is_zero(self, agent):
        assert agent.compute_fitness() == 0.0

    def test_custom_fitness_config(self):
        config = FitnessConfig(delivery_reward=10.0, idle_penalty=0.0)
        agent = Agent('a', home=(0, 0), brain=PolicyNetwork(randomize=False), fitness_config=config)
        agent.resources_delivered = 3
        assert agent.compute_fitness() == pytest.approx(30.0)
