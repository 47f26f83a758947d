"""
Test that all modules can be imported without collisions.

This module validates that the public packages import cleanly without
circular dependencies and expose their documented entry points.
"""

import pytest


class TestPoliciesImport:
    """Test zerod_policies package imports cleanly."""

    def test_zerod_policies_import(self):
        """Test zerod_policies package imports cleanly."""
        import zerod_policies

        assert hasattr(zerod_policies, "SimulationParameters")
        assert hasattr(zerod_policies, "IntegratorPolicy")
        assert hasattr(zerod_policies, "RetryPolicy")
        assert hasattr(zerod_policies, "OperationReport")


class TestZeroDImport:
    """Test zerod package imports cleanly."""

    def test_zerod_import(self):
        """Test the top-level entry points are exported."""
        import zerod

        for name in zerod.__all__:
            assert hasattr(zerod, name), name

    def test_version(self):
        """Test the package carries a version string."""
        import zerod

        assert isinstance(zerod.__version__, str)

    @pytest.mark.parametrize("module", [
        "zerod.core",
        "zerod.blocks",
        "zerod.algebra",
        "zerod.validity",
        "zerod.adapters",
        "zerod.builder",
        "zerod.solver",
        "zerod.interface",
        "zerod.calibration",
        "zerod.state",
    ])
    def test_submodule_import(self, module):
        """Test each subpackage imports on its own."""
        import importlib

        assert importlib.import_module(module) is not None


class TestBlockRegistry:
    """Test every description type name resolves to a block class."""

    @pytest.mark.parametrize("type_name", [
        "ResistiveVessel",
        "BloodVessel",
        "BloodVesselCRL",
        "NORMAL_JUNCTION",
        "internal_junction",
        "resistive_junction",
        "BloodVesselJunction",
        "FLOW",
        "PRESSURE",
        "RESISTANCE",
        "RCR",
        "CORONARY",
        "ClosedLoopCoronaryLeft",
        "ClosedLoopCoronaryRight",
        "ClosedLoopRCR",
        "ClosedLoopHeartAndPulmonary",
        "LinearElastanceChamber",
    ])
    def test_type_names(self, type_name):
        """Test a description type name resolves."""
        from zerod.blocks import Block, get_block_class

        assert issubclass(get_block_class(type_name), Block)
