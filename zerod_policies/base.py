"""
Base utilities for zerod policies.

This module provides the OperationReport dataclass returned by
solver-level operations such as stepping an instance to a target time.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, Any, List
import json


@dataclass
class OperationReport:
    """
    Standard report structure for solver operations.

    Every stepping or initialization call returns a report carrying the
    success flag, warnings, errors, and operation-specific metadata such as
    the reached time, Newton iteration counts and residual norms.
    """
    operation: str = "unknown"
    success: bool = True
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def add_error(self, message: str) -> None:
        """Add an error message and mark as failed."""
        self.errors.append(message)
        self.success = False


__all__ = [
    "OperationReport",
]
