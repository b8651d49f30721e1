"""
Fatal error conditions of the assembly-and-solve pipeline.

None of these are recoverable locally: assembly is deterministic, so
retrying with the same inputs reproduces the same failure. They
propagate to the caller (or are converted to a tagged SolveResult by
solve_heat_conduction).

    FEMError
    ├── DegenerateElementError   non-positive Jacobian determinant
    ├── SingularSystemError      factorization failure / floating DOFs
    └── MeshIndexError           node or DOF index out of range
"""

from typing import Optional, Sequence, Tuple


class FEMError(Exception):
    """Base class for fatal finite element errors."""


class DegenerateElementError(FEMError, ValueError):
    """
    Raised when an element maps with det(J) <= 0 at a quadrature point.

    Attributes:
        element_id: Offending element (None if unknown)
        point: Reference coordinates (xi1, xi2) of the evaluation
        det: The determinant found there
    """

    def __init__(self, det: float,
                 point: Tuple[float, float],
                 element_id: Optional[int] = None):
        self.det = det
        self.point = point
        self.element_id = element_id
        where = f"element {element_id}" if element_id is not None else "element"
        super().__init__(
            f"Degenerate geometry in {where}: det(J) = {det:.6e} "
            f"at reference point ({point[0]:.6f}, {point[1]:.6f})"
        )


class SingularSystemError(FEMError, RuntimeError):
    """
    Raised when the constrained system cannot be factorized.

    Attributes:
        floating_dofs: DOFs detected as unconstrained (may be empty when
                       the singularity was only found by the factorization)
    """

    def __init__(self, message: str, floating_dofs: Sequence[int] = ()):
        self.floating_dofs = list(floating_dofs)
        super().__init__(message)


class MeshIndexError(FEMError, IndexError):
    """Raised when a node or DOF index lies outside the declared range."""
