import warnings
import numpy as np
import jax.numpy as jnp
import pytest
from jkepsolver import (get_solver, EllipticSolver, HyperbolicSolver, KeplerSolution,
                        DomainError, NonConvergenceWarning)
from jkepsolver.utils import check_eccentricity, warn_if_not_converged


def test_get_solver():
    assert isinstance(get_solver(0.), EllipticSolver)
    assert isinstance(get_solver(0.6), EllipticSolver)
    assert isinstance(get_solver(1.2), HyperbolicSolver)
    assert get_solver(np.float64(3.)).eccentricity == 3.
    for e in [1., -0.5, np.nan, np.inf, "hyperbolic"]:
        with pytest.raises(DomainError):
            get_solver(e)


def test_check_eccentricity():
    assert check_eccentricity(0.3) == 0.3
    assert check_eccentricity(np.float32(0.5)) == 0.5
    assert check_eccentricity(2, hyperbolic=True) == 2.
    with pytest.raises(DomainError):
        check_eccentricity(1., hyperbolic=False)
    with pytest.raises(DomainError):
        check_eccentricity(1., hyperbolic=True)


def test_warn_if_not_converged():
    sol = KeplerSolution(jnp.zeros(4), jnp.array([3, 20, 2, 20]),
                         jnp.array([True, False, True, False]))
    with pytest.warns(NonConvergenceWarning, match="2 of 4"):
        warn_if_not_converged(sol, 20)

    sol = sol._replace(converged=jnp.ones(4, dtype=bool))
    with warnings.catch_warnings():
        warnings.simplefilter("error", NonConvergenceWarning)
        warn_if_not_converged(sol, 20)


def test_shapes():
    M = np.linspace(-2., 2., 12).reshape(3, 4)
    for solver in [EllipticSolver(0.4), HyperbolicSolver(1.4)]:
        sol = solver.solve_with_info(M)
        assert sol.anomaly.shape == M.shape
        assert sol.iterations.shape == M.shape
        assert sol.converged.shape == M.shape
        assert np.ndim(solver.solve(1.)) == 0


if __name__ == '__main__':
    test_get_solver()
    test_check_eccentricity()
    test_warn_if_not_converged()
    test_shapes()
