"""
Tests for model and solution checks.
"""

import copy
import json

import numpy as np
import pytest

from zerod import Solver, build_model, to_networkx
from zerod.validity import (
    check_connectivity,
    check_finite_solution,
    check_junction_flow_balance,
    check_parameter_signs,
    run_model_checks,
)


@pytest.fixture
def two_networks(ohm_description):
    """Two unconnected vessels, each between its own boundary conditions."""
    description = copy.deepcopy(ohm_description)
    description["boundary_conditions"] += [
        {"bc_name": "INFLOW2", "bc_type": "FLOW", "bc_values": {"Q": 1.0}},
        {"bc_name": "OUT2", "bc_type": "PRESSURE", "bc_values": {"P": 0.0}},
    ]
    description["vessels"].append({
        "vessel_id": 1,
        "vessel_name": "V1",
        "zero_d_element_type": "ResistiveVessel",
        "zero_d_element_values": {"R": 10.0},
        "boundary_conditions": {"inlet": "INFLOW2", "outlet": "OUT2"},
    })
    return description


class TestNetworkxAdapter:
    """Tests for the block graph."""

    def test_graph_structure(self, junction_description):
        """Test blocks become nodes and connections become edges."""
        model, _ = build_model(junction_description)

        graph = to_networkx(model)

        assert graph.number_of_nodes() == 7
        assert graph.number_of_edges() == 6
        assert graph.nodes["J0"]["block_class"] == "junction"
        assert graph.nodes["V1"]["block_type"] == "ResistiveVessel"
        edge = graph.edges["J0", "V2"]
        assert edge["name"] == "J0:V2"
        assert model.variable_names[edge["flow_dof"]] == "flow:J0:V2"


class TestModelChecks:
    """Tests for topology and parameter checks."""

    def test_connected(self, junction_description):
        """Test a single network passes."""
        model, _ = build_model(junction_description)

        result = check_connectivity(model)

        assert result.passed
        assert result.details["num_components"] == 1

    def test_disconnected_is_warning(self, two_networks):
        """Test separate sub-networks are reported as a warning."""
        model, _ = build_model(two_networks)

        result = check_connectivity(model)

        assert not result.passed
        assert result.details["num_components"] == 2
        assert result.warnings and not result.errors

    def test_disconnected_logged_on_init(self, two_networks, caplog):
        """Test the solver warns about disconnected models."""
        with caplog.at_level("WARNING", logger="zerod.solver"):
            Solver(two_networks)

        assert "disconnected" in caplog.text

    def test_negative_resistance(self, ohm_description):
        """Test negative lumped parameters are errors."""
        description = copy.deepcopy(ohm_description)
        description["vessels"][0]["zero_d_element_values"]["R"] = -1.0
        model, _ = build_model(description)

        result = check_parameter_signs(model)

        assert not result.passed
        assert result.details["violations"] == [{"block": "V0", "parameter": "R"}]

    def test_pressures_may_be_negative(self, ohm_description):
        """Test only resistances, capacitances and inductances are checked."""
        description = copy.deepcopy(ohm_description)
        description["boundary_conditions"][1]["bc_values"]["P"] = -10.0
        model, _ = build_model(description)

        assert check_parameter_signs(model).passed


class TestSolutionChecks:
    """Tests for checks on computed states."""

    def test_balanced_junction(self, junction_description):
        """Test the steady solution conserves mass at the junction."""
        solver = Solver(junction_description)

        result = check_junction_flow_balance(solver.model, solver.y)

        assert result.passed
        assert result.details["junctions_checked"] == 1

    def test_unbalanced_junction(self, junction_description):
        """Test a state losing flow at a junction is flagged."""
        model, _ = build_model(junction_description)
        y = np.zeros(model.dofhandler.size)
        y[model.dofhandler.variable_index("flow:V0:J0")] = 10.0
        y[model.dofhandler.variable_index("flow:J0:V1")] = 6.0

        result = check_junction_flow_balance(model, y)

        assert not result.passed
        assert result.details["violations"][0]["imbalance"] == pytest.approx(4.0)

    def test_relative_tolerance(self, junction_description):
        """Test small imbalances relative to the inflow can be accepted."""
        model, _ = build_model(junction_description)
        y = np.zeros(model.dofhandler.size)
        y[model.dofhandler.variable_index("flow:V0:J0")] = 10.0
        y[model.dofhandler.variable_index("flow:J0:V1")] = 9.99

        assert check_junction_flow_balance(model, y, rtol=1e-2).passed

    def test_non_finite(self, ohm_description):
        """Test NaN unknowns are named."""
        model, _ = build_model(ohm_description)
        y = np.array([1.0, np.nan, 0.0, 1.0])

        result = check_finite_solution(model, y)

        assert result.details["non_finite"] == ["flow:INFLOW:V0"]


class TestRunModelChecks:
    """Tests for the check runner."""

    def test_ok_report(self, junction_description):
        """Test a healthy steady state passes all checks."""
        report = Solver(junction_description).validate()

        assert report.success
        assert report.status == "ok"
        assert report.metadata["total_checks"] == 4

    def test_structure_only(self, ohm_description):
        """Test solution checks are skipped without a state."""
        model, _ = build_model(ohm_description)

        report = run_model_checks(model)

        assert [check.name for check in report.checks] == ["connectivity", "parameter_signs"]

    def test_warnings_status(self, two_networks):
        """Test warnings without errors give the warnings status."""
        model, _ = build_model(two_networks)

        report = run_model_checks(model)

        assert report.success
        assert report.status == "warnings"

    def test_fail_status(self, junction_description):
        """Test errors fail the report."""
        model, _ = build_model(junction_description)
        y = np.zeros(model.dofhandler.size)
        y[model.dofhandler.variable_index("flow:V0:J0")] = 1.0

        report = run_model_checks(model, y)

        assert not report.success
        assert report.status == "fail"
        assert report.get_check("junction_flow_balance").passed is False

    def test_save(self, junction_description, tmp_path):
        """Test reports are written as JSON."""
        model, _ = build_model(junction_description)
        path = tmp_path / "report.json"

        run_model_checks(model).save(path)

        assert json.loads(path.read_text())["status"] == "ok"
