"""
Quadrature module: Gauss-Legendre rules on the bi-unit square.
"""

from .gauss import gauss_legendre_1d, gauss_legendre_2d, GaussQuadrature
