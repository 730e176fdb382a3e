__all__ = ["EllipticSolver", "HyperbolicSolver", "KeplerSolution", "DomainError",
           "NonConvergenceWarning", "get_solver"]

__author__ = "Kento Masuda"
__license__ = "MIT"
__description__ = "JAX solvers for the elliptic and hyperbolic Kepler equations"

from .jkepsolver_version import __version__
from . import utils
from . import ellipse
from . import hyperbola
from .utils import KeplerSolution, DomainError, NonConvergenceWarning
from .ellipse import EllipticSolver
from .hyperbola import HyperbolicSolver
from .kepler import get_solver
