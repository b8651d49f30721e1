"""
Configuration and problem setup.

Problems are described in YAML files loaded with OmegaConf and merged
over the structured defaults below (a 15 x 40 element copper plate,
0.03 x 0.08 m, heated from the top edge):

    mesh:
      elements: [15, 40]
      domain_min: [0.0, 0.0]
      domain_max: [0.03, 0.08]

    material:
      conductivity: [[385.0, 0.0], [0.0, 385.0]]

    source: null                # or an expression in x, y

    boundary_conditions:
      - boundary: bottom
        value: "300*(1 + x/3)"
      - boundary: top
        value: "310*(1 + 8*x**2)"

    solver:
      quadrature_points: 2
      bc_method: elimination
      n_workers: 1
      boundary_tolerance: null  # null: generator tags, number: coordinate test

    output:
      directory: output
      vtk: true
      xdmf: true
      field_name: D

Boundary values and sources are expressions in x and y, parsed with
SymPy and compiled to numpy functions.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

import numpy as np
import sympy
from omegaconf import DictConfig, OmegaConf

from ..discretization.mesh import Mesh, DirichletBC, build_structured_mesh
from ..quadrature.gauss import GaussQuadrature
from ..solver.base import BC_METHODS
from ..solver.heat import conductivity_tensor, solve_heat_conduction
from ..solver.result import SolveResult

log = logging.getLogger(__name__)

_X, _Y = sympy.symbols("x y", real=True)


@dataclass
class MeshConfig:
    elements: List[int] = field(default_factory=lambda: [15, 40])
    domain_min: List[float] = field(default_factory=lambda: [0.0, 0.0])
    domain_max: List[float] = field(default_factory=lambda: [0.03, 0.08])


@dataclass
class MaterialConfig:
    conductivity: List[List[float]] = field(
        default_factory=lambda: [[385.0, 0.0], [0.0, 385.0]])


@dataclass
class BoundaryConditionConfig:
    boundary: str = "bottom"
    value: str = "0"


@dataclass
class SolverConfig:
    quadrature_points: int = 2
    bc_method: str = "elimination"
    n_workers: int = 1
    boundary_tolerance: Optional[float] = None


@dataclass
class OutputConfig:
    directory: str = "output"
    vtk: bool = True
    xdmf: bool = True
    field_name: str = "D"


@dataclass
class ProblemConfig:
    mesh: MeshConfig = field(default_factory=MeshConfig)
    material: MaterialConfig = field(default_factory=MaterialConfig)
    source: Optional[str] = None
    boundary_conditions: List[BoundaryConditionConfig] = field(default_factory=lambda: [
        BoundaryConditionConfig("bottom", "300*(1 + x/3)"),
        BoundaryConditionConfig("top", "310*(1 + 8*x**2)"),
    ])
    solver: SolverConfig = field(default_factory=SolverConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def default_config() -> DictConfig:
    """Structured default configuration."""
    return OmegaConf.structured(ProblemConfig)


def load_config(filename: Union[str, Path]) -> DictConfig:
    """
    Load analysis configuration from a YAML file.

    Keys missing from the file keep their defaults; unknown keys or
    values of the wrong type raise an OmegaConf validation error.
    """
    path = Path(filename)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    cfg = OmegaConf.merge(default_config(), OmegaConf.load(path))
    log.info("Loaded configuration from %s", path)
    log.debug("Configuration:\n%s", OmegaConf.to_yaml(cfg))
    return cfg


def parse_expression(expression: Union[str, float, int]) -> Callable[[float, float], float]:
    """
    Compile an expression in x and y to a function f(x, y) -> float.

    Parameters:
        expression: e.g. "310*(1 + 8*x**2)" or a number

    Raises:
        ValueError: if the expression cannot be parsed or uses other symbols
    """
    try:
        expr = sympy.sympify(expression, locals={"x": _X, "y": _Y})
    except (sympy.SympifyError, TypeError, SyntaxError) as exc:
        raise ValueError(f"Cannot parse expression {expression!r}: {exc}") from exc

    unknown = expr.free_symbols - {_X, _Y}
    if unknown:
        names = ", ".join(sorted(str(s) for s in unknown))
        raise ValueError(f"Expression {expression!r} uses unknown symbols: {names}")

    compiled = sympy.lambdify((_X, _Y), expr, modules="numpy")

    def func(x: float, y: float) -> float:
        return float(compiled(x, y))

    return func


@dataclass
class HeatProblem:
    """
    A fully set-up conduction problem, ready to solve.

    Attributes:
        mesh: Mesh
        conductivity: 2x2 conductivity tensor
        dirichlet_bcs: Boundary conditions in application order
        source: Source function or None
        quadrature: Element quadrature rule
        bc_method: "elimination" or "penalty"
        n_workers: Threads used for element computations
    """
    mesh: Mesh
    conductivity: np.ndarray
    dirichlet_bcs: List[DirichletBC]
    source: Optional[Callable[[float, float], float]] = None
    quadrature: Optional[GaussQuadrature] = None
    bc_method: str = "elimination"
    n_workers: int = 1

    def solve(self) -> SolveResult:
        """Assemble, constrain and solve; returns a tagged result."""
        return solve_heat_conduction(
            self.mesh, self.conductivity, self.dirichlet_bcs,
            source=self.source, quadrature=self.quadrature,
            bc_method=self.bc_method, n_workers=self.n_workers)


def setup_problem_from_config(config: Any) -> HeatProblem:
    """
    Set up mesh, material, boundary conditions and solver options.

    Parameters:
        config: DictConfig (or anything OmegaConf.merge accepts) following ProblemConfig

    Returns:
        HeatProblem
    """
    cfg = OmegaConf.merge(default_config(), config)

    if cfg.solver.bc_method not in BC_METHODS:
        raise ValueError(f"Unknown BC method: {cfg.solver.bc_method} "
                         f"(expected one of {', '.join(BC_METHODS)})")

    mesh = build_structured_mesh(list(cfg.mesh.elements),
                                 list(cfg.mesh.domain_min),
                                 list(cfg.mesh.domain_max))

    kappa = conductivity_tensor(np.array(OmegaConf.to_container(cfg.material.conductivity)))

    tol = cfg.solver.boundary_tolerance
    bcs = []
    for bc_cfg in cfg.boundary_conditions:
        func = parse_expression(bc_cfg.value)
        bc = DirichletBC.from_function(mesh, bc_cfg.boundary, func, tol=tol)
        log.info("Dirichlet BC on %s: T = %s (%d nodes)",
                 bc_cfg.boundary, bc_cfg.value, len(bc.dof_indices))
        bcs.append(bc)

    source = parse_expression(cfg.source) if cfg.source is not None else None

    return HeatProblem(
        mesh=mesh,
        conductivity=kappa,
        dirichlet_bcs=bcs,
        source=source,
        quadrature=GaussQuadrature.uniform(cfg.solver.quadrature_points),
        bc_method=cfg.solver.bc_method,
        n_workers=cfg.solver.n_workers,
    )
