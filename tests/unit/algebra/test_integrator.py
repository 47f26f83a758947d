"""
Tests for the generalized-alpha integrator.
"""

import copy

import numpy as np
import pytest

from zerod import build_model, initial_state
from zerod.algebra import Integrator, IntegratorStatus, SparseSystem
from zerod.core import ConfigurationError, NumericalError
from zerod_policies import IntegratorPolicy


def _integrator(description, policy=None, time_step_size=0.1):
    model, _ = build_model(description)
    system = SparseSystem()
    system.reserve(model)
    y, ydot = initial_state(model, description)
    system.first_assembly(model, 0.0, y, ydot)
    return model, Integrator(model, system, time_step_size, policy), y, ydot


def _stenosis_description(ohm_description):
    description = copy.deepcopy(ohm_description)
    description["vessels"][0]["zero_d_element_type"] = "BloodVessel"
    description["vessels"][0]["zero_d_element_values"] = {
        "R_poiseuille": 100.0, "C": 1e-3, "L": 1.0, "stenosis_coefficient": 50.0,
    }
    return description


def _short_circuit_description(ohm_description):
    """Zero-resistance vessel between two zero-pressure outlets carrying a flow of 1."""
    description = copy.deepcopy(ohm_description)
    description["boundary_conditions"][0] = {
        "bc_name": "INFLOW", "bc_type": "PRESSURE", "bc_values": {"P": 0.0},
    }
    description["vessels"][0]["zero_d_element_values"] = {"R": 0.0}
    description["initial_condition"] = {"flow_all": 1.0}
    return description


class TestCoefficients:
    """Tests for generalized-alpha coefficients."""

    def test_coefficients_from_rho(self, ohm_description):
        """Test alpha_m, alpha_f and gamma follow from the spectral radius."""
        _, integrator, _, _ = _integrator(ohm_description, IntegratorPolicy(rho=0.5))

        assert integrator.alpha_m == pytest.approx(0.5 * 2.5 / 1.5)
        assert integrator.alpha_f == pytest.approx(1.0 / 1.5)
        assert integrator.gamma == pytest.approx(0.5 + integrator.alpha_m - integrator.alpha_f)

    def test_e_coeff(self, ohm_description):
        """Test the ydot weight of the Jacobian scales with 1/dt."""
        _, integrator, _, _ = _integrator(ohm_description, time_step_size=0.2)
        expected = integrator.alpha_m / (integrator.alpha_f * integrator.gamma * 0.2)

        assert integrator.e_coeff == pytest.approx(expected)
        integrator.update_time_step_size(0.1)
        assert integrator.e_coeff == pytest.approx(2.0 * expected)

    def test_invalid_rho(self, ohm_description):
        """Test rho outside [0, 1] is rejected."""
        with pytest.raises(ConfigurationError, match="rho"):
            _integrator(ohm_description, IntegratorPolicy(rho=1.5))

    def test_invalid_time_step(self, ohm_description):
        """Test a non-positive step size is rejected."""
        with pytest.raises(ConfigurationError, match="positive"):
            _integrator(ohm_description, time_step_size=0.0)


class TestStep:
    """Tests for single time steps."""

    def test_linear_step_converges(self, ohm_description):
        """Test a linear model converges in one Newton iteration."""
        _, integrator, y, ydot = _integrator(ohm_description)

        result = integrator.step(0.0, y, ydot)

        assert result.converged
        assert result.status is IntegratorStatus.CONVERGED
        assert result.iterations == 1
        assert result.time == pytest.approx(0.1)

    def test_algebraic_unknowns_settle(self, ohm_description):
        """Test an inconsistent start decays onto the algebraic solution."""
        model, integrator, y, ydot = _integrator(ohm_description)
        time = 0.0
        first = None
        for _ in range(10):
            result = integrator.step(time, y, ydot)
            time, y, ydot = result.time, result.y, result.ydot
            if first is None:
                first = model.solution_dict(y)["pressure:INFLOW:V0"]

        # the corrector extrapolates from the alpha_f level
        assert first == pytest.approx(500.0 / integrator.alpha_f)
        assert model.solution_dict(y)["pressure:INFLOW:V0"] == pytest.approx(500.0, rel=1e-6)

    def test_consistent_state_is_kept(self, ohm_description):
        """Test a state that already satisfies the equations is not changed."""
        _, integrator, _, _ = _integrator(ohm_description)
        y = np.array([500.0, 5.0, 0.0, 5.0])

        result = integrator.step(0.0, y, np.zeros(4))

        assert result.converged
        assert result.iterations == 0
        np.testing.assert_allclose(result.y, y)

    def test_singular_structure_with_zero_residual(self, ohm_description):
        """Test a singular Jacobian raises even when no Newton update is needed."""
        description = _short_circuit_description(ohm_description)
        _, integrator, y, ydot = _integrator(description)
        assert integrator.system.residual(y, ydot) == pytest.approx(np.zeros(4))

        with pytest.raises(NumericalError, match="Singular"):
            integrator.step(0.0, y, ydot)
        assert integrator.status is IntegratorStatus.FAILED

    def test_input_state_not_modified(self, ohm_description):
        """Test the committed state passed in is never modified."""
        _, integrator, y, ydot = _integrator(ohm_description)
        y_before = y.copy()

        integrator.step(0.0, y, ydot)

        np.testing.assert_array_equal(y, y_before)

    def test_nonlinear_step_converges(self, ohm_description):
        """Test a stenosis model converges within the iteration limit."""
        _, integrator, y, ydot = _integrator(_stenosis_description(ohm_description))

        result = integrator.step(0.0, y, ydot)

        assert result.converged
        assert result.iterations > 1
        assert result.residual_norm < integrator.policy.atol

    def test_failure_keeps_previous_state(self, ohm_description):
        """Test a step that exhausts its iterations fails without advancing."""
        policy = IntegratorPolicy(max_iter=1)
        _, integrator, y, ydot = _integrator(_stenosis_description(ohm_description), policy)

        result = integrator.step(0.0, y, ydot)

        assert result.status is IntegratorStatus.FAILED
        assert not result.converged
        assert result.time == 0.0
        np.testing.assert_array_equal(result.y, y)
        assert integrator.status is IntegratorStatus.FAILED

    def test_line_search_converges(self, ohm_description):
        """Test damped Newton updates also converge."""
        policy = IntegratorPolicy(line_search=True)
        _, integrator, y, ydot = _integrator(_stenosis_description(ohm_description), policy)

        result = integrator.step(0.0, y, ydot)

        assert result.converged

    def test_step_size_override(self, ohm_description):
        """Test a per-step size overrides the configured one."""
        _, integrator, y, ydot = _integrator(ohm_description)

        result = integrator.step(0.0, y, ydot, time_step_size=0.05)

        assert result.time == pytest.approx(0.05)
        assert result.time_step_size == 0.05

    def test_iteration_statistics(self, ohm_description):
        """Test the average Newton iteration count is tracked."""
        _, integrator, y, ydot = _integrator(ohm_description)
        result = integrator.step(0.0, y, ydot)
        integrator.step(result.time, result.y, result.ydot)

        assert integrator.n_steps == 2
        assert integrator.average_nonlinear_iterations <= 1.0
