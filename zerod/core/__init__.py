"""Core data types: parameters, DOF bookkeeping and errors."""

from .errors import ZeroDError, ConfigurationError, NumericalError, ConvergenceFailure
from .parameter import Parameter
from .dof import DOFHandler, Node

__all__ = [
    "ZeroDError",
    "ConfigurationError",
    "NumericalError",
    "ConvergenceFailure",
    "Parameter",
    "DOFHandler",
    "Node",
]
