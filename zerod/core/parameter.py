"""
Model parameters.

A Parameter is either constant or a sampled time series interpolated
piecewise-linearly. Periodic series wrap time over one period; non-periodic
series hold their first/last value outside the sampled range. Sample arrays
are read-only, so several Parameters may share one table.
"""

from typing import Any, Optional, Tuple
import numpy as np

from .errors import ConfigurationError


def _readonly(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=float)
    array.setflags(write=False)
    return array


class Parameter:
    """
    Constant or time-dependent block parameter.

    Parameters
    ----------
    name : str
        Parameter identity, unique within the owning block
    value : float or array-like, optional
        Constant value (a vector for array-valued parameters)
    times : array-like, optional
        Sample times of a time series, strictly increasing
    values : array-like, optional
        Sample values of a time series (first axis matches ``times``)
    periodic : bool
        Whether the time series repeats with period ``times[-1] - times[0]``
    """

    def __init__(
        self,
        name: str,
        value: Any = None,
        times: Any = None,
        values: Any = None,
        periodic: bool = True,
    ):
        self.name = name
        self.is_periodic = periodic
        self._steady = False
        self._mean = None
        if value is not None:
            self._set_constant(value)
        else:
            self._set_series(times, values)

    @classmethod
    def from_table(cls, name: str, times: np.ndarray, values: np.ndarray, periodic: bool = True) -> "Parameter":
        """Create a Parameter aliasing existing read-only sample arrays."""
        param = cls.__new__(cls)
        param.name = name
        param.is_periodic = periodic
        param._steady = False
        param._mean = None
        if times.flags.writeable or values.flags.writeable:
            param._set_series(times, values)
        else:
            param._check_series(times, values)
            param.times = times
            param.values = values
            param.is_constant = False
            param.is_array = values.ndim > 1
        return param

    def _set_constant(self, value: Any) -> None:
        value = np.asarray(value, dtype=float)
        self.is_constant = True
        self.is_array = value.ndim > 0
        self.times = _readonly([0.0])
        self.values = _readonly(value[np.newaxis, ...])

    def _set_series(self, times: Any, values: Any) -> None:
        if times is None or values is None:
            times = np.zeros(0) if times is None else times
            values = np.zeros(0) if values is None else values
        times = _readonly(times)
        values = _readonly(values)
        self._check_series(times, values)
        self.times = times
        self.values = values
        self.is_constant = False
        self.is_array = values.ndim > 1

    def _check_series(self, times: np.ndarray, values: np.ndarray) -> None:
        if times.ndim != 1:
            raise ConfigurationError(f"Parameter '{self.name}': sample times must be one-dimensional")
        if values.shape[:1] != times.shape:
            raise ConfigurationError(
                f"Parameter '{self.name}': {times.shape[0]} sample times but {values.shape[0] if values.ndim else 0} values"
            )
        if times.size > 1 and np.any(np.diff(times) <= 0.0):
            raise ConfigurationError(f"Parameter '{self.name}': sample times must be strictly increasing")

    @property
    def num_samples(self) -> int:
        return int(self.times.shape[0])

    @property
    def period(self) -> float:
        """Length of one period of the time series (0 for constants)."""
        if self.is_constant or self.num_samples < 2:
            return 0.0
        return float(self.times[-1] - self.times[0])

    @property
    def is_steady(self) -> bool:
        return self._steady

    def _require_samples(self) -> None:
        if self.num_samples == 0:
            raise ConfigurationError(f"Parameter '{self.name}' has no samples")

    def _bracket(self, time: float) -> Tuple[int, float, bool]:
        """Return (left sample index, weight of right sample, inside range)."""
        times = self.times
        if self.is_periodic:
            time = times[0] + (time - times[0]) % self.period
        if time <= times[0]:
            return 0, 0.0, not time < times[0]
        if time >= times[-1]:
            return times.shape[0] - 2, 1.0, not time > times[-1]
        idx = int(np.searchsorted(times, time, side="right")) - 1
        weight = (time - times[idx]) / (times[idx + 1] - times[idx])
        return idx, weight, True

    def value(self, time: float) -> Any:
        """
        Evaluate the parameter at a simulation time.

        Returns a float for scalar parameters and a numpy array for
        array-valued parameters.
        """
        self._require_samples()
        if self._steady:
            result = self._mean
        elif self.is_constant or self.num_samples == 1:
            result = self.values[0]
        else:
            idx, weight, _ = self._bracket(time)
            result = (1.0 - weight) * self.values[idx] + weight * self.values[idx + 1]
        return result if self.is_array else float(result)

    def derivative(self, time: float) -> Any:
        """Evaluate the time derivative (secant slope between bracketing samples)."""
        self._require_samples()
        zero = np.zeros(self.values.shape[1:]) if self.is_array else 0.0
        if self._steady or self.is_constant or self.num_samples == 1:
            return zero
        idx, _, inside = self._bracket(time)
        if not inside and not self.is_periodic:
            return zero
        slope = (self.values[idx + 1] - self.values[idx]) / (self.times[idx + 1] - self.times[idx])
        return slope if self.is_array else float(slope)

    def update(self, values: Any, times: Any = None) -> None:
        """
        Replace the stored samples.

        Parameters
        ----------
        values : float or array-like
            A scalar makes the parameter constant. With ``times`` the
            parameter becomes a time series; without ``times`` an array
            replaces the values on the existing time grid.
        times : array-like, optional
            New sample times
        """
        if times is not None:
            self._set_series(times, values)
        elif np.ndim(values) == 0 or (self.is_constant and np.ndim(values) == self.values.ndim - 1):
            self._set_constant(values)
        else:
            values = np.asarray(values, dtype=float)
            if values.shape[:1] != self.times.shape:
                raise ConfigurationError(
                    f"Parameter '{self.name}': expected {self.num_samples} values, got {values.shape[0]}"
                )
            self._set_series(self.times, values)
        if self._steady:
            self._mean = self._time_average()

    def _time_average(self) -> Any:
        self._require_samples()
        if self.is_constant or self.num_samples == 1:
            return self.values[0]
        dt = np.diff(self.times)
        mids = 0.5 * (self.values[1:] + self.values[:-1])
        return np.tensordot(dt, mids, axes=1) / self.period

    def to_steady(self) -> None:
        """Replace the parameter by its time-average over one period."""
        self._mean = self._time_average()
        self._steady = True

    def to_unsteady(self) -> None:
        self._steady = False
        self._mean = None

    def __repr__(self) -> str:
        kind = "constant" if self.is_constant else f"series[{self.num_samples}]"
        return f"Parameter({self.name!r}, {kind})"


__all__ = ["Parameter"]
