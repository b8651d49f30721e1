"""
Command line driver.

Usage:
    python -m watfFEM                           # default plate problem
    python -m watfFEM --config conf/default.yaml
    python -m watfFEM --elements 30 80 --output results --no-xdmf -v

Runs mesh generation, boundary conditions, assembly, enforcement and
solve, then exports the temperature field. Exits with status 1 on any
fatal condition.
"""

import argparse
import logging
from pathlib import Path
from typing import List, Optional

import numpy as np
from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException

from .errors import FEMError
from .io.config import default_config, load_config, setup_problem_from_config
from .logging_config import setup_logging
from .postprocess.export import export_solution_data
from .postprocess.vtk import export_vtk_unstructured_2d
from .postprocess.xmf2 import generate_xmf

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="watfFEM",
        description="Steady heat conduction on bilinear quadrilaterals")
    parser.add_argument("--config", "-c", type=str, default=None,
                        help="YAML problem file (default: built-in plate problem)")
    parser.add_argument("--elements", "-n", type=int, nargs=2, metavar=("NX", "NY"),
                        default=None, help="Number of elements per direction")
    parser.add_argument("--output", "-o", type=str, default=None,
                        help="Output directory")
    parser.add_argument("--no-vtk", action="store_true",
                        help="Skip VTK export")
    parser.add_argument("--no-xdmf", action="store_true",
                        help="Skip binary + XDMF export")
    parser.add_argument("--workers", "-j", type=int, default=None,
                        help="Threads used for element computations")
    parser.add_argument("--log-file", type=str, default=None,
                        help="Also write the log to this file")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug output")
    return parser


def _apply_overrides(cfg, args: argparse.Namespace) -> None:
    if args.elements is not None:
        cfg.mesh.elements = list(args.elements)
    if args.output is not None:
        cfg.output.directory = args.output
    if args.workers is not None:
        cfg.solver.n_workers = args.workers
    if args.no_vtk:
        cfg.output.vtk = False
    if args.no_xdmf:
        cfg.output.xdmf = False


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    try:
        cfg = load_config(args.config) if args.config else default_config()
        _apply_overrides(cfg, args)
        problem = setup_problem_from_config(cfg)
    except (OSError, ValueError, FEMError, OmegaConfBaseException) as exc:
        log.error("Problem setup failed: %s", exc)
        return 1

    mesh = problem.mesh
    log.info("Mesh: %d x %d elements, %d nodes",
             *cfg.mesh.elements, mesh.n_nodes)

    result = problem.solve()
    if not result.ok:
        log.error("%s: %s", result.status.name, result.message)
        return 1

    T = result.solution
    output_dir = Path(cfg.output.directory)
    field_name = cfg.output.field_name

    try:
        if cfg.output.vtk:
            export_vtk_unstructured_2d(str(output_dir / "solution.vtk"), mesh, T,
                                       field_name=field_name)
        if cfg.output.xdmf:
            export_solution_data(mesh, output_dir / "RESULT", fields={field_name: T})
            generate_xmf(output_dir / "RESULT")
    except OSError as exc:
        log.error("Export to %s failed: %s", output_dir, exc)
        return 1

    log.info("=" * 60)
    log.info("Summary")
    log.info("=" * 60)
    log.info("  Elements: %d", mesh.n_elements)
    log.info("  DOFs: %d", mesh.n_dof)
    log.info("  Dirichlet BCs: %s",
             ", ".join(bc["boundary"] for bc in OmegaConf.to_container(cfg.boundary_conditions)))
    log.info("  %s range: [%.6f, %.6f]", field_name, float(np.min(T)), float(np.max(T)))
    log.info("=" * 60)

    return 0
