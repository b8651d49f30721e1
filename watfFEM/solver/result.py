"""
Tagged outcome of a complete solve.

Callers that prefer branching over exception handling use
solve_heat_conduction(), which converts the fatal FEMError family into
a SolveResult with an explicit status.
"""

import numpy as np
from enum import Enum
from typing import Optional
from dataclasses import dataclass

from ..errors import DegenerateElementError, FEMError, MeshIndexError, SingularSystemError


class SolveStatus(Enum):
    SUCCESS = "success"
    DEGENERATE_GEOMETRY = "degenerate_geometry"
    SINGULAR_SYSTEM = "singular_system"
    INVALID_MESH = "invalid_mesh"


@dataclass(frozen=True)
class SolveResult:
    """
    Attributes:
        status: Outcome of the run
        solution: Nodal temperatures D (None unless status is SUCCESS)
        message: Human readable description of a failure
    """
    status: SolveStatus
    solution: Optional[np.ndarray] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is SolveStatus.SUCCESS

    @classmethod
    def success(cls, solution: np.ndarray) -> 'SolveResult':
        return cls(SolveStatus.SUCCESS, solution)

    @classmethod
    def from_error(cls, error: FEMError) -> 'SolveResult':
        """Map an exception of the FEMError family to its status."""
        if isinstance(error, DegenerateElementError):
            status = SolveStatus.DEGENERATE_GEOMETRY
        elif isinstance(error, SingularSystemError):
            status = SolveStatus.SINGULAR_SYSTEM
        elif isinstance(error, MeshIndexError):
            status = SolveStatus.INVALID_MESH
        else:
            raise TypeError(f"No status for {type(error).__name__}") from error
        return cls(status, None, str(error))

    def unwrap(self) -> np.ndarray:
        """Return the solution or raise RuntimeError with the failure message."""
        if not self.ok:
            raise RuntimeError(f"{self.status.value}: {self.message}")
        return self.solution
