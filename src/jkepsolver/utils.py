"""
Shared numerical policy, result type and error taxonomy for the Kepler solvers.
"""
__all__ = [
    "CONVERGENCE_THRESHOLD", "MAX_ITERATIONS", "KeplerSolution", "DomainError",
    "NonConvergenceWarning", "check_eccentricity", "warn_if_not_converged"
]

import math
import warnings
from typing import NamedTuple

import numpy as np
import jax.numpy as jnp
from jax import config
config.update('jax_enable_x64', True)


CONVERGENCE_THRESHOLD = 1e-10
MAX_ITERATIONS = 20


class KeplerSolution(NamedTuple):
    """result of a solve

        Attributes:
            anomaly: eccentric or hyperbolic anomaly, same shape as the mean anomaly
            iterations: number of refinement steps taken for each element
            converged: False where the iteration cap was reached before the threshold

    """
    anomaly: jnp.ndarray
    iterations: jnp.ndarray
    converged: jnp.ndarray


class DomainError(ValueError):
    """eccentricity outside the range of the chosen equation"""


class NonConvergenceWarning(UserWarning):
    """iteration cap reached before the convergence threshold"""


def check_eccentricity(eccentricity, hyperbolic=False):
    """validate an eccentricity for the elliptic or hyperbolic equation

        Args:
            eccentricity: orbital eccentricity
            hyperbolic: if True require e > 1, otherwise 0 <= e < 1

        Returns:
            eccentricity as float

        Raises:
            DomainError: if the value is non-finite or outside the range

    """
    try:
        ecc = float(eccentricity)
    except (TypeError, ValueError) as err:
        raise DomainError(
            f"eccentricity must be a real number, got {eccentricity!r}") from err

    if not math.isfinite(ecc):
        raise DomainError(f"eccentricity must be finite, got {ecc}")
    if hyperbolic and not ecc > 1.:
        raise DomainError(
            f"hyperbolic Kepler equation requires e > 1, got {ecc}")
    if not hyperbolic and not 0. <= ecc < 1.:
        raise DomainError(
            f"elliptic Kepler equation requires 0 <= e < 1, got {ecc}")
    return ecc


def warn_if_not_converged(solution, max_iter, label="Kepler solver"):
    """issue NonConvergenceWarning when some elements hit the iteration cap"""
    converged = np.asarray(solution.converged)
    if converged.all():
        return
    nfail = int(np.size(converged) - np.count_nonzero(converged))
    warnings.warn(
        "%s: %d of %d values did not converge within %d iterations; returning best estimate."
        % (label, nfail, np.size(converged), max_iter),
        NonConvergenceWarning,
        stacklevel=3,
    )
