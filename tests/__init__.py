"""
Tests for zerod

This package contains validation tests for:
- Parameters, DOF bookkeeping and block equations
- Sparse assembly and generalized-alpha time integration
- Model construction from descriptions
- Solver, restart state and the multi-instance interface
- Calibration and validity checks
"""
