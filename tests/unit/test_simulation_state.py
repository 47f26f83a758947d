"""
Tests for restart states.
"""

import json

import numpy as np
import pytest

from zerod import SimulationState
from zerod.core import ConfigurationError


class TestSimulationState:
    """Tests for SimulationState."""

    def test_arrays_are_copied(self):
        """Test the state owns float copies of its vectors."""
        y = [1, 2]
        state = SimulationState(["a", "b"], y, [0, 0], 1)

        assert state.y.dtype == float
        assert state.time == 1.0
        y[0] = 5
        assert state.y[0] == 1.0

    def test_length_mismatch(self):
        """Test vectors must match the DOF map."""
        with pytest.raises(ConfigurationError, match="do not match"):
            SimulationState(["a", "b"], [1.0], [0.0, 0.0], 0.0)

    def test_scalar_vectors_rejected(self):
        """Test scalar state vectors raise ConfigurationError."""
        with pytest.raises(ConfigurationError, match="length 1/1"):
            SimulationState(["pressure:a", "flow:a"], 1.0, 0.0, 0.0)

    def test_compatible_map(self):
        """Test an identical DOF map is accepted."""
        state = SimulationState(["a", "b"], [1.0, 2.0], [0.0, 0.0], 0.0)

        state.check_compatible(["a", "b"])

    def test_reordered_map(self):
        """Test a reordered DOF map is rejected."""
        state = SimulationState(["a", "b"], [1.0, 2.0], [0.0, 0.0], 0.0)

        with pytest.raises(ConfigurationError, match="different ordering"):
            state.check_compatible(["b", "a"])

    def test_different_variables(self):
        """Test a DOF map with other variables is rejected."""
        state = SimulationState(["a", "b"], [1.0, 2.0], [0.0, 0.0], 0.0)

        with pytest.raises(ConfigurationError, match="Restart state does not match"):
            state.check_compatible(["a", "c"])

    def test_json_round_trip(self):
        """Test a state survives JSON serialization."""
        state = SimulationState(["a", "b"], [1.0, 2.0], [0.5, -0.5], 0.25)

        restored = SimulationState.from_dict(json.loads(json.dumps(state.to_dict())))

        assert restored.dof_map == ["a", "b"]
        np.testing.assert_array_equal(restored.ydot, [0.5, -0.5])
        assert restored.time == 0.25
