"""
Cheap approximations to the exact polyhedral p-value at a single LAR step.

``k`` is the step number, starting at 1.
"""
# License: BSD 3 clause

import numpy as np
from scipy import linalg
from scipy.stats import expon

from ._polyhedral import tnorm_surv
from .exceptions import InsufficientPathError, InvalidInputError


def _check_step(path, k):
    if k < 1 or int(k) != k:
        raise InvalidInputError('k must be a positive integer, got %r' % (k,))
    if k > path.n_steps:
        raise InsufficientPathError(
            'Step %i was requested but the lar path has only %i steps'
            % (k, path.n_steps))
    return int(k)


def _knot_sd(path, sigma, k):
    v = path.gamma[path.nk[k - 1] - 1]
    return sigma * np.sqrt(np.dot(v, v))


def _previous_knot(path, k):
    return np.inf if k == 1 else path.lambdas[k - 2]


def spacing_pval(path, sigma, k):
    """Spacing test: the ``k``-th knot as a Gaussian truncated to
    ``(mp_k, lambda_{k-1})``."""
    k = _check_step(path, k)
    return tnorm_surv(path.lambdas[k - 1], 0., _knot_sd(path, sigma, k),
                      path.mp[k - 1], _previous_knot(path, k))


def asymp_pval(path, sigma, k):
    """Asymptotic test: the ``k``-th knot as a Gaussian truncated to
    ``(lambda_{k+1}, lambda_{k-1})``.

    For the last step of a complete path the lower limit is 0.
    """
    k = _check_step(path, k)
    if k < path.n_steps:
        a = path.lambdas[k]
    elif path.complete_path:
        a = 0.
    else:
        raise InsufficientPathError(
            'Asymptotic p-values at step %i require %i steps of the lar path'
            % (k, k + 1))
    return tnorm_surv(path.lambdas[k - 1], 0., _knot_sd(path, sigma, k), a,
                      _previous_knot(path, k))


def covtest_pval(path, sigma, k):
    """Covariance test of Lockhart et al. (2014) at step ``k``.

    The statistic is the squared change in the equiangular fit when the
    ``k``-th variable enters, scaled by
    ``lambda_k (lambda_k - lambda_{k+1}) / sigma^2``, and is referred to
    an Exp(1) distribution. On the last step of a complete path the sign
    of the entering variable is read from the least squares fit.
    """
    k = _check_step(path, k)
    A = np.flatnonzero(path.coefs[:, k - 1])
    sA = np.sign(path.coefs[A, k - 1])
    lam1 = path.lambdas[k - 1]
    j = path.actions[k - 1]

    if k < path.n_steps:
        lam2 = path.lambdas[k]
        sj = np.sign(path.coefs[j, k])
    elif path.complete_path:
        lam2 = 0.
        sj = np.sign(path.bls[j])
    else:
        raise InsufficientPathError(
            'Cov test p-values at step %i require %i steps of the lar path'
            % (k, k + 1))

    X = path.X
    if A.size:
        XA = X[:, A]
        term1 = np.dot(XA, linalg.solve(np.dot(XA.T, XA), sA,
                                        assume_a='pos'))
    else:
        term1 = 0.
    Aj = np.r_[A, j]
    XAj = X[:, Aj]
    term2 = np.dot(XAj, linalg.solve(np.dot(XAj.T, XAj), np.r_[sA, sj],
                                     assume_a='pos'))
    t = np.sum((term2 - term1) ** 2) * lam1 * (lam1 - lam2) / sigma ** 2
    return float(expon.sf(t))
