"""
Tests for parameter calibration.
"""

import numpy as np
import pytest

from zerod import build_model, calibrate
from zerod.core import ConfigurationError

TRUE_VALUES = {"R_poiseuille": 100.0, "C": 0.5, "L": 2.0}


def _observations(model, n=40, seed=0):
    """States that satisfy the vessel equations for TRUE_VALUES exactly."""
    rng = np.random.default_rng(seed)
    size = model.dofhandler.size
    y = rng.normal(size=(n, size))
    ydot = rng.normal(size=(n, size))
    p_in, q_in, p_out, q_out = model.get_block("V0").global_var_ids[:4]

    resistance, capacitance, inductance = (TRUE_VALUES[k] for k in ("R_poiseuille", "C", "L"))
    y[:, p_in] = y[:, p_out] + resistance * y[:, q_in] + inductance * ydot[:, q_out]
    y[:, q_out] = y[:, q_in] - capacitance * ydot[:, p_in] + capacitance * resistance * ydot[:, q_in]
    return y, ydot


class TestCalibrate:
    """Tests for calibrate."""

    def test_recovers_vessel_parameters(self, windkessel_description):
        """Test exact observations recover the vessel parameters."""
        model, _ = build_model(windkessel_description)
        model.update_block_params("V0", {"R_poiseuille": 10.0, "C": 0.1, "L": 1.0})
        y, ydot = _observations(model)

        result = calibrate(model, y, ydot)

        fitted = result.parameters["V0"]
        assert result.success
        assert list(result.parameters) == ["V0"]
        assert fitted["R_poiseuille"] == pytest.approx(100.0, rel=1e-4)
        assert fitted["C"] == pytest.approx(0.5, rel=1e-4)
        assert fitted["L"] == pytest.approx(2.0, rel=1e-4)
        assert fitted["stenosis_coefficient"] == pytest.approx(0.0, abs=1e-4)
        assert result.cost < 1e-10

    def test_apply(self, windkessel_description):
        """Test fitted values can be written back into the model."""
        model, _ = build_model(windkessel_description)
        model.update_block_params("V0", {"R_poiseuille": 10.0})
        y, ydot = _observations(model)

        calibrate(model, y, ydot, apply=True)

        assert model.get_block("V0").value("R_poiseuille") == pytest.approx(100.0, rel=1e-4)

    def test_shape_mismatch(self, windkessel_description):
        """Test observations must cover every unknown."""
        model, _ = build_model(windkessel_description)

        with pytest.raises(ConfigurationError, match="do not match"):
            calibrate(model, np.zeros((3, 2)), np.zeros((3, 2)))

    def test_unsupported_block(self, windkessel_description):
        """Test naming a block without calibration support raises."""
        model, _ = build_model(windkessel_description)
        y, ydot = _observations(model)

        with pytest.raises(ConfigurationError, match="do not support calibration"):
            calibrate(model, y, ydot, block_names=["RCR"])

    def test_result_serializes(self, windkessel_description):
        """Test the result converts to plain Python types."""
        model, _ = build_model(windkessel_description)
        y, ydot = _observations(model)

        data = calibrate(model, y, ydot).to_dict()

        assert set(data["parameters"]["V0"]) == {"R_poiseuille", "C", "L", "stenosis_coefficient"}
        assert isinstance(data["parameters"]["V0"]["C"], float)
        assert set(data["block_costs"]) == {"V0"}
