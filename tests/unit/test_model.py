"""
Tests for the Model registry and DOF numbering.
"""

import numpy as np
import pytest

from zerod import Model, build_model
from zerod.blocks import FlowReferenceBC, PressureReferenceBC, ResistiveVessel
from zerod.core import ConfigurationError, Parameter


def _series_model(flow_param=None, pressure_param=None, cardiac_period=None):
    model = Model("series", cardiac_period=cardiac_period)
    vessel = model.add_block(ResistiveVessel("V0", {"R": 100.0}))
    inflow = model.add_block(FlowReferenceBC("IN", {"Q": flow_param if flow_param is not None else 5.0}))
    outflow = model.add_block(
        PressureReferenceBC("OUT", {"P": pressure_param if pressure_param is not None else 0.0})
    )
    model.connect(inflow, vessel)
    model.connect(vessel, outflow)
    return model


class TestConstruction:
    """Tests for adding blocks and nodes."""

    def test_duplicate_block_name(self):
        """Test block names are unique."""
        model = Model()
        model.add_block(ResistiveVessel("V0", {"R": 1.0}))

        with pytest.raises(ConfigurationError, match="Duplicate"):
            model.add_block(ResistiveVessel("V0", {"R": 1.0}))

    def test_block_ids_follow_insertion(self):
        """Test block ids are insertion positions."""
        model = _series_model()

        assert [block.id for block in model.blocks] == [0, 1, 2]
        assert model.get_block("OUT").id == 2

    def test_default_node_name(self):
        """Test nodes are named after the blocks they connect."""
        model = _series_model()

        assert [node.name for node in model.nodes] == ["IN:V0", "V0:OUT"]

    def test_unknown_block(self):
        """Test looking up a missing block raises."""
        with pytest.raises(ConfigurationError, match="Unknown block"):
            Model().get_block("missing")

    def test_empty_model_cannot_finalize(self):
        """Test a model without blocks is rejected."""
        with pytest.raises(ConfigurationError, match="no blocks"):
            Model("empty").finalize()

    def test_finalized_model_is_frozen(self):
        """Test blocks cannot be added after finalization."""
        model = _series_model()
        model.finalize()

        with pytest.raises(ConfigurationError, match="finalized"):
            model.add_block(ResistiveVessel("V1", {"R": 1.0}))


class TestFinalize:
    """Tests for DOF assignment and model checks."""

    def test_dof_order(self):
        """Test node unknowns are registered by the first block touching them."""
        model = _series_model()
        model.finalize()

        assert model.variable_names == [
            "pressure:IN:V0",
            "flow:IN:V0",
            "pressure:V0:OUT",
            "flow:V0:OUT",
        ]
        assert model.dofhandler.num_equations == 4

    def test_finalize_is_idempotent(self):
        """Test finalizing twice keeps the numbering."""
        model = _series_model()
        model.finalize()
        model.finalize()

        assert model.dofhandler.size == 4

    def test_missing_connection(self):
        """Test a vessel without an outlet is rejected."""
        model = Model()
        vessel = model.add_block(ResistiveVessel("V0", {"R": 1.0}))
        model.connect(model.add_block(FlowReferenceBC("IN", {"Q": 1.0})), vessel)

        with pytest.raises(ConfigurationError, match="outlet"):
            model.finalize()

    def test_default_cardiac_period(self):
        """Test a model without time series uses a period of 1."""
        model = _series_model()
        model.finalize()

        assert model.cardiac_cycle_period == 1.0

    def test_period_from_time_series(self):
        """Test the period is taken from the time-dependent parameters."""
        flow = Parameter("Q", times=[0.0, 0.4, 0.8], values=[1.0, 2.0, 1.0])
        model = _series_model(flow_param=flow)
        model.finalize()

        assert model.cardiac_cycle_period == pytest.approx(0.8)

    def test_inconsistent_periods(self):
        """Test time series with different periods are rejected."""
        flow = Parameter("Q", times=[0.0, 1.0], values=[1.0, 2.0])
        pressure = Parameter("P", times=[0.0, 2.0], values=[0.0, 1.0])
        model = _series_model(flow_param=flow, pressure_param=pressure)

        with pytest.raises(ConfigurationError, match="Inconsistent cardiac periods"):
            model.finalize()

    def test_explicit_period_wins(self):
        """Test an explicit cardiac period overrides the derived one."""
        flow = Parameter("Q", times=[0.0, 1.0], values=[1.0, 2.0])
        model = _series_model(flow_param=flow, cardiac_period=0.5)
        model.finalize()

        assert model.cardiac_cycle_period == 0.5

    def test_constant_parameter_must_be_constant(self):
        """Test a time series on a constant-only parameter is rejected."""
        model = Model()
        vessel = model.add_block(
            ResistiveVessel("V0", {"R": Parameter("R", times=[0.0, 1.0], values=[1.0, 2.0])})
        )
        model.connect(model.add_block(FlowReferenceBC("IN", {"Q": 1.0})), vessel)
        model.connect(vessel, model.add_block(PressureReferenceBC("OUT", {"P": 0.0})))

        with pytest.raises(ConfigurationError, match="must be constant"):
            model.finalize()


class TestParameterUpdates:
    """Tests for runtime parameter changes."""

    def test_update_marks_constant_assembly(self):
        """Test updating a parameter schedules a constant reassembly."""
        model = _series_model()
        model.finalize()
        model.needs_constant_update = False

        model.update_block_params("V0", {"R": 200.0})

        assert model.get_block("V0").value("R") == 200.0
        assert model.needs_constant_update

    def test_update_unknown_parameter(self):
        """Test updating a parameter the block does not have raises."""
        model = _series_model()
        model.finalize()

        with pytest.raises(ConfigurationError, match="no parameter"):
            model.update_block_params("V0", {"C": 1.0})

    def test_rejected_update_keeps_old_values(self):
        """Test a rejected update leaves the block parameters untouched."""
        model = _series_model()
        model.finalize()
        model.needs_constant_update = False

        with pytest.raises(ConfigurationError, match="must be constant"):
            model.update_block_params("V0", {"R": {"values": [1.0, 2.0], "t": [0.0, 1.0]}})

        resistance = model.get_block("V0").params["R"]
        assert resistance.is_constant
        assert model.get_block("V0").value("R") == 100.0
        assert not model.needs_constant_update

    def test_steady_toggle(self):
        """Test steady mode replaces time series by their mean."""
        flow = Parameter("Q", times=[0.0, 0.5, 1.0], values=[0.0, 2.0, 0.0])
        model = _series_model(flow_param=flow)
        model.finalize()

        model.to_steady()
        assert model.get_block("IN").value("Q", 0.5) == pytest.approx(1.0)
        model.to_unsteady()
        assert model.get_block("IN").value("Q", 0.5) == pytest.approx(2.0)


class TestSolutionMapping:
    """Tests for named solution access."""

    def test_solution_dict(self):
        """Test a solution vector maps onto variable names."""
        model = _series_model()
        model.finalize()

        solution = model.solution_dict(np.array([500.0, 5.0, 0.0, 5.0]))

        assert solution["pressure:IN:V0"] == 500.0
        assert solution["flow:V0:OUT"] == 5.0

    def test_closed_loop_flag(self, heart_description):
        """Test closed-loop models are recognised."""
        model, _ = build_model(heart_description)

        assert model.has_closed_loop
        assert not _series_model().has_closed_loop
