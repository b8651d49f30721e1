#!/usr/bin/env python3
"""
Example: steady heat conduction in a copper plate.

This example walks through the complete pipeline:
1. Create a structured mesh of bilinear quadrilaterals
2. Prescribe temperatures on the bottom and top edges
3. Assemble, apply boundary conditions and solve
4. Export the temperature field (VTK, XDMF) and optionally plot it

Problem:
    -div(κ ∇T) = 0    in Ω = [0, 0.03] x [0, 0.08]
             T = 300 (1 + x/3)      on the bottom edge
             T = 310 (1 + 8 x²)     on the top edge

    κ = 385 I  (copper, W/(m K)); left and right edges are insulated.

A convergence study on the unit square with the manufactured solution
u = sin(πx) sin(πy) is available with --convergence.

Usage:
    ./examples/src/heat_conduction_2d.py
    ./examples/src/heat_conduction_2d.py --elements 30 80 --plot --save
    ./examples/src/heat_conduction_2d.py --convergence
"""

import sys
import argparse
from pathlib import Path

# Use Agg backend if --save is specified (non-interactive)
if '--save' in sys.argv:
    import matplotlib
    matplotlib.use('Agg')

import numpy as np

# Add project root to path (two levels up from examples/src/)
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from watfFEM.discretization.mesh import (
    build_structured_mesh, get_all_boundary_nodes, DirichletBC
)
from watfFEM.solver.heat import HeatConductionSolver
from watfFEM.postprocess.norms import nodal_max_error, compute_l2_error, convergence_rates
from watfFEM.postprocess.vtk import export_vtk_unstructured_2d
from watfFEM.postprocess.export import export_solution_data
from watfFEM.postprocess.xmf2 import generate_xmf


def run(n_elements=(15, 40),
        export: bool = True,
        verbose: bool = True):
    """
    Run the plate example.

    Parameters:
        n_elements: Number of elements (n_x, n_y)
        export: Whether to write VTK and XDMF output
        verbose: Print progress information

    Returns:
        Dictionary with results (solution, mesh, solver)
    """
    if verbose:
        print("=" * 60)
        print("FEM 2D Heat Conduction Example")
        print("=" * 60)
        print(f"Elements: {n_elements[0]} x {n_elements[1]}")
        print()

    # ==========================================================================
    # 1. Create mesh
    # ==========================================================================
    mesh = build_structured_mesh(n_elements, (0.0, 0.0), (0.03, 0.08))

    if verbose:
        print(f"  Nodes: {mesh.n_nodes}")
        print(f"  Elements: {mesh.n_elements}")
        print()

    # ==========================================================================
    # 2. Set up solver and boundary conditions
    # ==========================================================================
    kappa = np.array([[385.0, 0.0],
                      [0.0, 385.0]])
    solver = HeatConductionSolver(mesh, conductivity=kappa)

    # Mesh extents are exact, so the edges are matched by equality
    def plate_temperature(x, y):
        if y == 0.0:
            return 300.0 * (1.0 + x / 3.0)
        if y == 0.08:
            return 310.0 * (1.0 + 8.0 * x**2)
        return None

    solver.add_dirichlet_bc(DirichletBC.from_predicate(mesh, plate_temperature))

    if verbose:
        print(f"  Constrained DOFs: {len(solver.boundary_values)}")
        print()

    # ==========================================================================
    # 3. Assemble and solve
    # ==========================================================================
    solver.assemble()

    if verbose:
        print(f"  Stiffness matrix: {solver.K.shape}, nnz = {solver.K.nnz}")

    solver.apply_boundary_conditions()
    T = solver.solve()

    if verbose:
        print(f"  Temperature range: [{T.min():.4f}, {T.max():.4f}]")
        print()

    # ==========================================================================
    # 4. Export
    # ==========================================================================
    if export:
        out_dir = Path(__file__).parent
        export_vtk_unstructured_2d(str(out_dir / "heat_conduction_2d.vtk"), mesh, T)
        export_solution_data(mesh, out_dir / "RESULT", fields={"D": T})
        generate_xmf(out_dir / "RESULT")

    return {
        'solution': T,
        'mesh': mesh,
        'solver': solver,
    }


def plot_temperature(mesh, T, save: bool = False):
    """Filled contour plot of the nodal temperatures."""
    import matplotlib.pyplot as plt

    n_x, n_y = mesh.n_elements_per_dir
    X = mesh.coordinates[:, 0].reshape(n_y + 1, n_x + 1)
    Y = mesh.coordinates[:, 1].reshape(n_y + 1, n_x + 1)
    Z = np.asarray(T).reshape(n_y + 1, n_x + 1)

    fig, ax = plt.subplots(figsize=(4, 8))
    contour = ax.contourf(X, Y, Z, levels=30, cmap='inferno')
    fig.colorbar(contour, ax=ax, label="T [K]")
    ax.set_aspect('equal')
    ax.set_xlabel("x [m]")
    ax.set_ylabel("y [m]")
    ax.set_title("Steady temperature")
    plt.tight_layout()

    if save:
        filename = Path(__file__).parent / "heat_conduction_2d.png"
        fig.savefig(filename, dpi=150)
        print(f"Saved: {filename}")
    else:
        plt.show()


def convergence_study(n_elements_list: list = None):
    """
    Run convergence study over mesh refinements on the unit square.

    Parameters:
        n_elements_list: List of element counts per direction
    """
    if n_elements_list is None:
        n_elements_list = [4, 8, 16, 32]

    def u_exact(x, y):
        return np.sin(np.pi * x) * np.sin(np.pi * y)

    # Source term: f = -∇²u = 2π² sin(πx) sin(πy)
    def source(x, y):
        return 2 * np.pi**2 * np.sin(np.pi * x) * np.sin(np.pi * y)

    print("=" * 70)
    print("Convergence Study: 2D Heat Conduction on Unit Square")
    print("=" * 70)
    print(f"{'Elements':>10} {'DOFs':>10} {'Nodal Error':>15} {'L2 Error':>15}")
    print("-" * 70)

    h_vals = []
    nodal_errors = []
    l2_errors = []

    for n_elem in n_elements_list:
        mesh = build_structured_mesh((n_elem, n_elem))
        solver = HeatConductionSolver(mesh, conductivity=1.0, source=source)
        solver.add_dirichlet_bc(DirichletBC.homogeneous(get_all_boundary_nodes(mesh)))
        u = solver.run()

        h_vals.append(1.0 / n_elem)
        nodal_errors.append(nodal_max_error(mesh, u, u_exact))
        l2_errors.append(compute_l2_error(mesh, u, u_exact))

        print(f"{n_elem:>10} {mesh.n_dof:>10} {nodal_errors[-1]:>15.6e} {l2_errors[-1]:>15.6e}")

    print()
    print(f"Nodal rates: {np.array2string(convergence_rates(h_vals, nodal_errors), precision=2)}")
    print(f"L2 rates:    {np.array2string(convergence_rates(h_vals, l2_errors), precision=2)}")
    print("Expected convergence rate: 2 for bilinear elements")

    return {'h': h_vals, 'nodal': nodal_errors, 'l2': l2_errors}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="2D Heat Conduction FEM Example")
    parser.add_argument("--elements", "-n", type=int, nargs=2, default=[15, 40],
                        metavar=("NX", "NY"),
                        help="Number of elements per direction (default: 15 40)")
    parser.add_argument("--convergence", "-c", action="store_true",
                        help="Run convergence study")
    parser.add_argument("--no-export", action="store_true",
                        help="Skip VTK/XDMF export")
    parser.add_argument("--plot", action="store_true",
                        help="Plot the temperature field")
    parser.add_argument("--save", action="store_true",
                        help="Save the plot instead of showing it")

    args = parser.parse_args()

    if args.convergence:
        convergence_study()
    else:
        result = run(n_elements=args.elements, export=not args.no_export)
        if args.plot:
            plot_temperature(result['mesh'], result['solution'], save=args.save)
