"""Solver selection from eccentricity."""
__all__ = ["get_solver"]

from .ellipse import EllipticSolver
from .hyperbola import HyperbolicSolver
from .utils import DomainError


def get_solver(eccentricity):
    """return the solver appropriate for the eccentricity

        Args:
            eccentricity: orbital eccentricity

        Returns:
            EllipticSolver for 0 <= e < 1, HyperbolicSolver for e > 1

        Raises:
            DomainError: for the parabolic case e = 1, negative or non-finite e

    """
    try:
        ecc = float(eccentricity)
    except (TypeError, ValueError) as err:
        raise DomainError(
            f"eccentricity must be a real number, got {eccentricity!r}") from err

    if ecc == 1.:
        raise DomainError("parabolic orbits (e = 1) are not supported.")
    if ecc > 1.:
        return HyperbolicSolver(ecc)
    return EllipticSolver(ecc)
