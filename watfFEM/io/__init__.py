"""
Input handling: YAML problem configuration.
"""

from .config import (
    ProblemConfig,
    HeatProblem,
    default_config,
    load_config,
    parse_expression,
    setup_problem_from_config,
)
