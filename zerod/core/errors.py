"""
Exception hierarchy for zerod.

ConfigurationError aborts model construction, NumericalError aborts a
single time step. Newton convergence failures are reported as a status by
the integrator; ConvergenceFailure is only raised when a whole run cannot
continue.
"""


class ZeroDError(Exception):
    """Base exception for zerod errors."""
    pass


class ConfigurationError(ZeroDError):
    """Raised when a model, block or parameter is malformed."""
    pass


class NumericalError(ZeroDError):
    """Raised when the linear solve fails or produces non-finite values."""
    pass


class ConvergenceFailure(ZeroDError):
    """Raised when a simulation run stops on a step that did not converge."""

    def __init__(self, message: str, time: float = 0.0, residual_norm: float = float("nan")):
        super().__init__(message)
        self.time = time
        self.residual_norm = residual_norm


__all__ = [
    "ZeroDError",
    "ConfigurationError",
    "NumericalError",
    "ConvergenceFailure",
]
