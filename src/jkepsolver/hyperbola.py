""" Hyperbolic Kepler equation solver based on the piecewise Pade method of Wu et al.

    The initial value comes from a piecewise Pade approximation of sinh/cosh for
    small-to-moderate mean anomalies, and from the large-H expansion otherwise.
    It is then corrected by a Halley step.
"""

__all__ = [
    "PADE_ANOMALY_THRESHOLDS", "PADE_EXPANSION_POINTS", "Regime",
    "pade_mean_anomaly_thresholds", "region_threshold", "classify_regime",
    "pade_interval", "pade_coefficients", "solve_cubic", "pade_initial_guess",
    "asymptotic_initial_guess", "halley_step", "hyperbolic_anomaly",
    "HyperbolicSolver"
]

from enum import IntEnum
import jax.numpy as jnp
from jax import jit, config
from jax.lax import while_loop
from .utils import (CONVERGENCE_THRESHOLD, MAX_ITERATIONS, KeplerSolution,
                    check_eccentricity, warn_if_not_converged)
config.update('jax_enable_x64', True)


CUBIC_THRESHOLD = 1e-6

# upper end of each hyperbolic-anomaly interval
PADE_ANOMALY_THRESHOLDS = jnp.array([
    40. / 8., 38. / 8., 34. / 8., 30. / 8., 26. / 8., 22. / 8., 18. / 8.,
    15. / 8., 13. / 8., 11. / 8., 9. / 8., 7. / 8., 5. / 8., 3. / 8.,
    29. / 200.
])

# point around which sinh/cosh are expanded in each interval
PADE_EXPANSION_POINTS = jnp.array([
    10. / 2., 9. / 2., 8. / 2., 7. / 2., 6. / 2., 5. / 2., 8. / 4., 7. / 4.,
    6. / 4., 5. / 4., 4. / 4., 3. / 4., 2. / 4., 1. / 4., 0. / 4.
])


class Regime(IntEnum):
    """which initial approximation is used"""
    PADE = 0
    ASYMPTOTIC = 1


def pade_mean_anomaly_thresholds(e):
    """mean anomalies corresponding to PADE_ANOMALY_THRESHOLDS (decreasing)"""
    return e * jnp.sinh(PADE_ANOMALY_THRESHOLDS) - PADE_ANOMALY_THRESHOLDS


def region_threshold(e):
    """mean anomaly separating the Pade and asymptotic regimes"""
    return pade_mean_anomaly_thresholds(e)[0]


def classify_regime(mh, thresholds):
    """Regime value for each |M|

        Args:
            mh: absolute mean anomaly
            thresholds: output of pade_mean_anomaly_thresholds

        Returns:
            int array of Regime values

    """
    return jnp.where(mh < thresholds[0], Regime.PADE.value, Regime.ASYMPTOTIC.value)


def pade_interval(mh, thresholds):
    """index of the Pade interval containing |M|

        Note:
            Since thresholds decrease, the index is the number of
            thresholds[1:] that exceed mh.

    """
    mh = jnp.asarray(mh)
    return jnp.sum(mh[..., None] < thresholds[1:], axis=-1)


def pade_coefficients(e, mh, a):
    """coefficients of the cubic in x = H - a from the Pade approximation around a

        Args:
            e: eccentricity
            mh: absolute mean anomaly
            a: expansion point

        Returns:
            tuple of coefficients (c3, c2, c1, c0)

    """
    sa, ca = jnp.sinh(a), jnp.cosh(a)
    d1 = ca * ca + 3.
    d2 = sa * sa + 4.
    p1 = ca * (3. * ca * ca + 17.) / (5. * d1)
    p2 = sa * (3. * sa * sa + 28.) / (20. * d2)
    p3 = ca * (ca * ca + 27.) / (60. * d1)
    q1 = -2. * ca * sa / (5. * d1)
    q2 = (sa * sa - 4.) / (20. * d2)
    c3 = e * p3 - q2
    c2 = e * p2 - (mh + a) * q2 - q1
    c1 = e * p1 - (mh + a) * q1 - 1.
    c0 = e * sa - mh - a
    return c3, c2, c1, c0


def solve_cubic(coefficients, x0, active, max_iter=MAX_ITERATIONS, tol=CUBIC_THRESHOLD):
    """Halley iteration for the root of a cubic

        Args:
            coefficients: (c3, c2, c1, c0)
            x0: starting value
            active: elements to iterate; others are returned as x0
            max_iter: maximum number of Halley steps
            tol: stopping threshold on the step size

        Returns:
            root estimate

    """
    c3, c2, c1, c0 = coefficients

    def step(x):
        f = ((c3 * x + c2) * x + c1) * x + c0
        fp = (3. * c3 * x + 2. * c2) * x + c1
        fpp = 6. * c3 * x + 2. * c2
        return jnp.where(active, -2. * f * fp / (2. * fp * fp - f * fpp), 0.)

    def cond(carry):
        i, _, dx = carry
        return jnp.logical_and(i < max_iter, jnp.any(jnp.abs(dx) >= tol))

    def body(carry):
        i, x, dx = carry
        moving = jnp.abs(dx) >= tol
        x_next = jnp.where(moving, x + dx, x)
        return (i + 1, x_next, jnp.where(moving, step(x_next), 0.))

    _, x, _ = while_loop(cond, body, (jnp.int32(0), x0, step(x0)))
    return x


def pade_initial_guess(mh, e, thresholds, active):
    """initial H from the piecewise Pade approximation (finite regime)

        Note:
            The cubic is started from min(mh/(e-1), upper end of the interval),
            both upper bounds of H, so the iteration approaches from one side.

    """
    i = pade_interval(mh, thresholds)
    a = PADE_EXPANSION_POINTS[i]
    x0 = jnp.minimum(mh / (e - 1.), PADE_ANOMALY_THRESHOLDS[i]) - a
    return a + solve_cubic(pade_coefficients(e, mh, a), x0, active)


def asymptotic_initial_guess(mh, e):
    """initial H for large |M|

        Note:
            Starts from H = ln(2M/e), where e sinh(H) - H - M = -(e^2/4M + H)
            exactly, and applies a third-order correction.

    """
    r = 2. * mh / e
    fa = jnp.log(r)
    ca = 0.5 * (r + 1. / r)
    sa = 0.5 * (r - 1. / r)
    fp = e * ca - 1.
    g = (e * e / (4. * mh) + fa) / fp
    u = e * sa / fp
    w = e * ca / fp
    top = 6. * g + 3. * u * g * g
    bottom = 6. + 6. * u * g + w * g * g
    return fa + top / bottom


def halley_step(H, mh, e):
    """single Halley step for e sinh(H) - H - mh = 0"""
    sH = jnp.sinh(H)
    f = e * sH - H - mh
    fp = e * jnp.cosh(H) - 1.
    fpp = e * sH
    return H - f / (fp - 0.5 * f * fpp / fp)


def _halley_while(H0, mh, e, max_iter, tol):
    # residual floor grows with |M|
    atol = tol * jnp.maximum(1., mh)

    def residual(H):
        return e * jnp.sinh(H) - H - mh

    H1 = halley_step(H0, mh, e)
    n1 = jnp.ones(jnp.shape(mh), dtype=jnp.int32)

    def cond(carry):
        i, _, f, _ = carry
        return jnp.logical_and(i < max_iter, jnp.any(jnp.abs(f) >= atol))

    def body(carry):
        i, H, f, n = carry
        active = jnp.abs(f) >= atol
        H_next = jnp.where(active, halley_step(H, mh, e), H)
        return (i + 1, H_next, residual(H_next), n + active.astype(jnp.int32))

    _, H, f, n = while_loop(cond, body, (jnp.int32(1), H1, residual(H1), n1))
    return H, n, jnp.logical_or(jnp.abs(f) < atol, jnp.logical_not(jnp.isfinite(mh)))


@jit
def hyperbolic_anomaly(M, e, max_iter=MAX_ITERATIONS, tol=CONVERGENCE_THRESHOLD):
    """compute hyperbolic anomaly given mean anomaly and eccentricity

        Args:
            M: mean anomaly, any real, scalar or array
            e: eccentricity (e > 1, not checked here)
            max_iter: maximum total number of Halley steps (at least one is taken)
            tol: threshold on |e sinh(H) - H - M| / max(1, |M|)

        Returns:
            KeplerSolution: hyperbolic anomaly, Halley steps taken, convergence flags

        Note:
            NaN propagates to the output, +-inf is returned unchanged;
            neither is reported as non-convergence.

    """
    M = jnp.asarray(M, dtype=jnp.float64)
    mh = jnp.abs(M)
    thresholds = pade_mean_anomaly_thresholds(e)
    pade = classify_regime(mh, thresholds) == Regime.PADE.value
    H0 = jnp.where(pade,
                   pade_initial_guess(mh, e, thresholds, pade),
                   asymptotic_initial_guess(mh, e))
    H, n, converged = _halley_while(H0, mh, e, max_iter, tol)
    H = jnp.where(M < 0, -H, H)
    H = jnp.where(jnp.isinf(M), M, H)
    return KeplerSolution(H, n, converged)


class HyperbolicSolver:
    """solver for e sinh(H) - H = M with e > 1

        Example:
            >>> solver = HyperbolicSolver(2.0)
            >>> H = solver.solve(5.0)

    """

    def __init__(self, eccentricity):
        """initialization

            Args:
                eccentricity: orbital eccentricity, e > 1

            Raises:
                DomainError: if eccentricity is out of range or non-finite

        """
        self._eccentricity = check_eccentricity(eccentricity, hyperbolic=True)

    @property
    def eccentricity(self):
        return self._eccentricity

    def __repr__(self):
        return "HyperbolicSolver(eccentricity=%r)" % self._eccentricity

    def region_threshold(self):
        """|M| above which the asymptotic approximation is used"""
        return float(region_threshold(self._eccentricity))

    def solve_with_info(self, mean_anomaly, max_iter=MAX_ITERATIONS, tol=CONVERGENCE_THRESHOLD):
        """solve and return the anomaly together with iteration diagnostics

            Args:
                mean_anomaly: mean anomaly, scalar or array
                max_iter: maximum total number of Halley steps
                tol: convergence threshold on the scaled residual

            Returns:
                KeplerSolution

        """
        return hyperbolic_anomaly(mean_anomaly, self._eccentricity, max_iter, tol)

    def solve(self, mean_anomaly, max_iter=MAX_ITERATIONS, tol=CONVERGENCE_THRESHOLD):
        """hyperbolic anomaly for the given mean anomaly

            Note:
                If the iteration cap is reached the best estimate is returned
                and NonConvergenceWarning is issued.

        """
        solution = self.solve_with_info(mean_anomaly, max_iter, tol)
        warn_if_not_converged(solution, max_iter, label="HyperbolicSolver")
        return solution.anomaly

    def to_dict(self):
        return {"eccentricity": self._eccentricity}

    @classmethod
    def from_dict(cls, pdic):
        return cls(pdic["eccentricity"])
