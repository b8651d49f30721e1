"""
Solver module: assembly, Dirichlet enforcement and direct solve.
"""

from .base import Solver, AssemblyShard
from .heat import (
    HeatConductionSolver,
    conductivity_tensor,
    local_stiffness,
    local_load,
    solve_heat_conduction,
)
from .result import SolveResult, SolveStatus
