""" Elliptic Kepler equation solver: analytic seed refined by Laguerre's method """

__all__ = [
    "reduce_mean_anomaly", "restore_eccentric_anomaly", "initial_guess",
    "laguerre_sign", "laguerre_delta", "eccentric_anomaly", "EllipticSolver"
]

import jax.numpy as jnp
from jax import jit, config
from jax.lax import while_loop
from .utils import (CONVERGENCE_THRESHOLD, MAX_ITERATIONS, KeplerSolution,
                    check_eccentricity, warn_if_not_converged)
config.update('jax_enable_x64', True)


LAGUERRE_ORDER = 5


def reduce_mean_anomaly(M):
    """map mean anomaly to [0, pi] using oddness and 2pi periodicity

        Args:
            M: mean anomaly (radian), any real

        Returns:
            tuple:
                - reduced mean anomaly x in [0, pi]
                - sign (+1 or -1) of |M| after removing whole turns
                - number of whole turns removed from |M|

    """
    a = jnp.abs(M)
    turns = jnp.round(a / (2 * jnp.pi))
    r = a - 2 * jnp.pi * turns
    sign = jnp.where(r < 0, -1., 1.)
    return jnp.abs(r), sign, turns


def restore_eccentric_anomaly(E, M, sign, turns):
    """inverse of reduce_mean_anomaly applied to the eccentric anomaly"""
    return jnp.sign(M) * (sign * E + 2 * jnp.pi * turns)


def initial_guess(x, e):
    """starting value for E, valid for 0 <= x <= pi

        Note:
            Exact at x=0 and x=pi. The denominator equals (2e - pi)^2 + 8ex > 0.

    """
    return x + (0.999999 * 4. * e * x * (jnp.pi - x)) \
        / (8. * e * x + 4. * e * (e - jnp.pi) + jnp.pi * jnp.pi)


def laguerre_sign(f_prime):
    """sign making the Laguerre denominator largest in magnitude"""
    return jnp.where(f_prime >= 0, 1., -1.)


def laguerre_delta(f, f_prime, f_prime_prime, order=LAGUERRE_ORDER):
    """single Laguerre correction for the root of f

        Args:
            f, f_prime, f_prime_prime: function value and first two derivatives
            order: Laguerre order n (5 for Kepler's equation, Conway 1986)

        Returns:
            correction to be added to the current estimate

    """
    n = order
    a = (n - 1.)**2 * f_prime * f_prime - n * (n - 1.) * f * f_prime_prime
    b = laguerre_sign(f_prime) * jnp.sqrt(jnp.abs(a))
    return -n * f / (f_prime + b)


def _laguerre_while(x, e, max_iter, tol):

    def residual(E):
        return E - e * jnp.sin(E) - x

    def update(E):
        sinE, cosE = jnp.sin(E), jnp.cos(E)
        f = E - e * sinE - x
        return E + laguerre_delta(f, 1. - e * cosE, e * sinE)

    E0 = initial_guess(x, e)
    i0 = jnp.int32(0)
    n0 = jnp.zeros(jnp.shape(x), dtype=jnp.int32)

    def cond(carry):
        i, _, f, _ = carry
        return jnp.logical_and(i < max_iter, jnp.any(jnp.abs(f) >= tol))

    def body(carry):
        i, E, f, n = carry
        active = jnp.abs(f) >= tol
        E_next = jnp.where(active, update(E), E)
        return (i + 1, E_next, residual(E_next), n + active.astype(jnp.int32))

    _, E, f, n = while_loop(cond, body, (i0, E0, residual(E0), n0))
    return E, n, jnp.logical_or(jnp.abs(f) < tol, jnp.isnan(x))


@jit
def eccentric_anomaly(M, e, max_iter=MAX_ITERATIONS, tol=CONVERGENCE_THRESHOLD):
    """compute eccentric anomaly given mean anomaly and eccentricity

        Args:
            M: mean anomaly (radian), any real, scalar or array
            e: eccentricity (0 <= e < 1, not checked here)
            max_iter: maximum number of Laguerre steps
            tol: threshold on |E - e sin(E) - M| of the reduced equation

        Returns:
            KeplerSolution: eccentric anomaly, Laguerre steps taken, convergence flags

        Note:
            NaN propagates to the output, +-inf is returned unchanged;
            neither is reported as non-convergence.

    """
    M = jnp.asarray(M, dtype=jnp.float64)
    x, sign, turns = reduce_mean_anomaly(M)
    Ered, n, converged = _laguerre_while(x, e, max_iter, tol)
    E = restore_eccentric_anomaly(Ered, M, sign, turns)
    E = jnp.where(jnp.isinf(M), M, E)
    E = jnp.where(e == 0, M, E)
    return KeplerSolution(E, n, converged)


class EllipticSolver:
    """solver for E - e sin(E) = M with 0 <= e < 1

        Example:
            >>> solver = EllipticSolver(0.5)
            >>> E = solver.solve(1.0)

    """

    def __init__(self, eccentricity):
        """initialization

            Args:
                eccentricity: orbital eccentricity, 0 <= e < 1

            Raises:
                DomainError: if eccentricity is out of range or non-finite

        """
        self._eccentricity = check_eccentricity(eccentricity, hyperbolic=False)

    @property
    def eccentricity(self):
        return self._eccentricity

    def __repr__(self):
        return "EllipticSolver(eccentricity=%r)" % self._eccentricity

    def solve_with_info(self, mean_anomaly, max_iter=MAX_ITERATIONS, tol=CONVERGENCE_THRESHOLD):
        """solve and return the anomaly together with iteration diagnostics

            Args:
                mean_anomaly: mean anomaly (radian), scalar or array
                max_iter: maximum number of Laguerre steps
                tol: convergence threshold on the residual

            Returns:
                KeplerSolution

        """
        return eccentric_anomaly(mean_anomaly, self._eccentricity, max_iter, tol)

    def solve(self, mean_anomaly, max_iter=MAX_ITERATIONS, tol=CONVERGENCE_THRESHOLD):
        """eccentric anomaly for the given mean anomaly

            Note:
                If the iteration cap is reached the best estimate is returned
                and NonConvergenceWarning is issued.

        """
        solution = self.solve_with_info(mean_anomaly, max_iter, tol)
        warn_if_not_converged(solution, max_iter, label="EllipticSolver")
        return solution.anomaly

    def to_dict(self):
        return {"eccentricity": self._eccentricity}

    @classmethod
    def from_dict(cls, pdic):
        return cls(pdic["eccentricity"])
