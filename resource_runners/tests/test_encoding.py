"""
Tests for sensor encoding.

Tests cast_ray and SensorEncoder for:
- Boundary and obstacle hits
- Feature layout and normalization
- Resource direction while searching and while carrying
"""
import math

import numpy as np
import pytest

from resource_runners.encoders import Kinematics, SensorConfig, SensorEncoder, cast_ray

from .conftest import OpenField


class TestCastRay:
    """Tests for the ray marcher."""

    def test_open_field_returns_max_length(self):
        """Test a ray that hits nothing reports its full length."""
        distance = cast_ray((400.0, 250.0), 0.0, 80.0, (800.0, 500.0), [])
        assert distance == 80.0

    def test_boundary_hit(self):
        """Test the first sample outside the world ends the ray."""
        # Samples at x = 795, 800, 805: 805 is out of bounds
        distance = cast_ray((790.0, 250.0), 0.0, 80.0, (800.0, 500.0), [])
        assert distance == 15.0

    def test_boundary_hit_negative_direction(self):
        """Test a ray leaving through the top edge."""
        distance = cast_ray((100.0, 12.0), -math.pi / 2, 80.0, (800.0, 500.0), [])
        assert distance == 15.0

    def test_obstacle_hit(self):
        """Test a ray stops at the first sample inside an obstacle radius."""
        # Samples at x = 105, 110, ...; 135 is the first within 20 of 150
        distance = cast_ray(
            (100.0, 100.0), 0.0, 80.0, (800.0, 500.0), [(150.0, 100.0)],
            obstacle_radius=20.0,
        )
        assert distance == 35.0

    def test_obstacle_behind_is_ignored(self):
        """Test an obstacle behind the ray origin does not block it."""
        distance = cast_ray(
            (300.0, 100.0), 0.0, 80.0, (800.0, 500.0), [(250.0, 100.0)],
        )
        assert distance == 80.0

    def test_coarser_step(self):
        """Test the step controls sample spacing."""
        distance = cast_ray((790.0, 250.0), 0.0, 80.0, (800.0, 500.0), [], step=20.0)
        assert distance == 20.0

    def test_invalid_step_raises(self):
        """Test a non-positive step is rejected."""
        with pytest.raises(ValueError):
            cast_ray((0.0, 0.0), 0.0, 80.0, (800.0, 500.0), [], step=0.0)


class TestSensorEncoder:
    """Tests for SensorEncoder."""

    @pytest.fixture
    def encoder(self):
        """Create encoder instance."""
        return SensorEncoder()

    @pytest.fixture
    def kinematics(self):
        """An agent at the centre, moving right and slightly down."""
        return Kinematics(position=(100.0, 100.0), velocity=(3.0, -5.0), heading=0.0)

    def test_input_size(self, encoder):
        """Test four rays plus four state features."""
        assert encoder.input_size == 8

    def test_feature_names(self, encoder):
        """Test feature names line up with the layout."""
        assert encoder.get_feature_names() == [
            'ray_-45', 'ray_0', 'ray_45', 'ray_90',
            'velocity_x', 'velocity_y',
            'resource_dir_x', 'resource_dir_y',
        ]

    def test_describe(self, encoder):
        """Test the encoder description."""
        info = encoder.describe()
        assert info['input_size'] == 8
        assert len(info['feature_names']) == 8

    def test_encode_shape_and_dtype(self, encoder, kinematics):
        """Test encode returns a float64 vector of input_size."""
        features = encoder.encode(kinematics, OpenField())
        assert features.shape == (8,)
        assert features.dtype == np.float64

    def test_rays_normalized(self, encoder, kinematics):
        """Test ray distances are divided by the ray length."""
        features = encoder.encode(kinematics, OpenField(ray_distance=40.0))
        assert np.allclose(features[:4], 0.5)

        features = encoder.encode(kinematics, OpenField())
        assert np.allclose(features[:4], 1.0)

    def test_velocity_scaled(self, encoder, kinematics):
        """Test velocity components are divided by ten."""
        features = encoder.encode(kinematics, OpenField())
        assert features[4] == pytest.approx(0.3)
        assert features[5] == pytest.approx(-0.5)

    def test_resource_direction_unit_vector(self, encoder, kinematics):
        """Test the direction to the nearest resource has unit length."""
        view = OpenField(resource=(130.0, 140.0))
        features = encoder.encode(kinematics, view, holding=False)

        assert features[6] == pytest.approx(0.6)
        assert features[7] == pytest.approx(0.8)

    def test_resource_direction_zero_when_holding(self, encoder, kinematics):
        """Test a carrying agent gets no resource direction."""
        view = OpenField(resource=(130.0, 140.0))
        features = encoder.encode(kinematics, view, holding=True)

        assert features[6] == 0.0
        assert features[7] == 0.0

    def test_resource_direction_zero_without_resources(self, encoder, kinematics):
        """Test the direction is zero when no resource is available."""
        features = encoder.encode(kinematics, OpenField(resource=None))
        assert features[6] == 0.0
        assert features[7] == 0.0

    def test_resource_direction_zero_on_top_of_resource(self, encoder, kinematics):
        """Test standing exactly on a resource yields a zero direction."""
        features = encoder.encode(kinematics, OpenField(resource=(100.0, 100.0)))
        assert features[6] == 0.0
        assert features[7] == 0.0
        assert np.all(np.isfinite(features))

    def test_rays_follow_heading(self, kinematics):
        """Test ray angles are relative to the agent's heading."""
        seen = []

        class RecordingView(OpenField):
            def ray_cast(self, origin, angle, max_length):
                seen.append(angle)
                return max_length

        encoder = SensorEncoder()
        turned = Kinematics(position=(100.0, 100.0), heading=1.0)
        encoder.encode(turned, RecordingView())

        expected = [1.0 - math.pi / 4, 1.0, 1.0 + math.pi / 4, 1.0 + math.pi / 2]
        assert seen == pytest.approx(expected)

    def test_custom_ray_layout(self, kinematics):
        """Test a different number of rays changes the input size."""
        encoder = SensorEncoder(SensorConfig(ray_angles=(0.0, math.pi)))
        assert encoder.input_size == 6
        assert encoder.encode(kinematics, OpenField()).shape == (6,)

    def test_encode_does_not_mutate_view(self, encoder, kinematics):
        """Test encoding never triggers the world's mutating hooks."""
        view = OpenField(resource=(130.0, 140.0))
        encoder.encode(kinematics, view)
        assert view.resolve_calls == 0
        assert view.reset_calls == 0


class TestKinematics:
    """Tests for the kinematics snapshot."""

    def test_speed_is_manhattan(self):
        assert Kinematics(velocity=(3.0, -4.0)).speed == 7.0

    def test_frozen(self):
        kinematics = Kinematics()
        with pytest.raises(Exception):
            kinematics.heading = 1.0
