"""
Selective inference along a least angle regression path.
"""
# License: BSD 3 clause

import warnings
from collections import namedtuple

import numpy as np
from scipy import linalg

from ._auxiliary import asymp_pval, covtest_pval, spacing_pval
from ._least_angle import LarPath, _sign
from ._polyhedral import poly_int, poly_pval
from ._stopping import aic_stop, forward_stop
from .exceptions import (InferenceWarning, InsufficientPathError,
                         InvalidInputError)

MODES = ('active', 'all', 'aic')


class LarInference(namedtuple('LarInference', [
        'mode', 'k', 'khat', 'pv', 'ci', 'tailarea', 'vlo', 'vup', 'vmat',
        'y', 'pv_spacing', 'pv_asymp', 'pv_covtest', 'vars', 'sign', 'sigma',
        'alpha'])):
    """Result of :func:`infer`.

    One entry per tested variable: in ``'active'`` mode the variable entering
    at each of the first ``k`` steps, otherwise every variable of the model
    at the tested step.

    Attributes
    ----------
    mode : {'active', 'all', 'aic'}
    k : int
        Number of steps the inference looked at.
    khat : int or None
        ForwardStop estimate (``'active'``), AIC stopping step (``'aic'``)
        or None (``'all'``).
    pv : ndarray
        Selective p-values.
    ci : ndarray of shape (n_tests, 2)
        Selective confidence intervals.
    tailarea : ndarray of shape (n_tests, 2)
        Achieved tail areas at the interval end points.
    vlo, vup : ndarray
        Truncation limits of each test statistic.
    vmat : ndarray of shape (n_tests, n_samples)
        Unit test directions.
    y : ndarray
        Standardized response.
    pv_spacing, pv_asymp, pv_covtest : ndarray or None
        Approximate p-values, ``'active'`` mode only.
    vars : ndarray
        Tested variables.
    sign : ndarray
        Signs of the test directions.
    sigma : float
        Noise level used.
    alpha : float
    """

    __slots__ = ()


def estimate_sigma(X, y):
    """Noise level from the full least squares fit, or ``sd(y)`` when there
    are fewer than twice as many samples as features."""
    n_samples, n_features = X.shape
    if n_samples < 2 * n_features:
        sigma = float(np.std(y, ddof=1))
        warnings.warn('p > n/2, and sd(y) = %0.3f used as an estimate of '
                      'sigma; you may want to supply sigma.' % sigma,
                      InferenceWarning)
        return sigma
    resid = y - np.dot(X, linalg.lstsq(X, y)[0])
    return float(np.sqrt(np.dot(resid, resid) / (n_samples - n_features)))


def _check_args(sigma, alpha, k, mode, grid_width_factor, grid_points):
    if sigma is not None and not sigma > 0:
        raise InvalidInputError('sigma must be positive, got %r' % (sigma,))
    if not 0 < alpha < 1:
        raise InvalidInputError('alpha must be in (0, 1), got %r' % (alpha,))
    if k is not None and (k < 1 or int(k) != k):
        raise InvalidInputError('k must be a positive integer, got %r' % (k,))
    if mode not in MODES:
        raise InvalidInputError('mode must be one of %s, got %r'
                                % (MODES, mode))
    if not grid_width_factor > 0:
        raise InvalidInputError('grid_width_factor must be positive, got %r'
                                % (grid_width_factor,))
    if grid_points < 2:
        raise InvalidInputError('grid_points must be at least 2, got %r'
                                % (grid_points,))


def _auxiliary_pvalues(path, sigma, k):
    spacing, asymp, covtest = np.empty(k), np.empty(k), np.empty(k)
    for j in range(1, k + 1):
        spacing[j - 1] = spacing_pval(path, sigma, j)
        try:
            asymp[j - 1] = asymp_pval(path, sigma, j)
            covtest[j - 1] = covtest_pval(path, sigma, j)
        except InsufficientPathError as e:
            warnings.warn('%s; reporting NaN.' % e, InferenceWarning)
            asymp[j - 1] = covtest[j - 1] = np.nan
    return spacing, asymp, covtest


def infer(path, sigma=None, alpha=0.1, k=None, mode='active',
          grid_width_factor=25, grid_points=1000, aic_mult=2, aic_patience=2,
          alternative='two-sided'):
    """Selective p-values and confidence intervals along a LAR path.

    Parameters
    ----------
    path : LarPath
        Output of :func:`build_path`.
    sigma : float, default=None
        Noise standard deviation. Estimated from the least squares
        residuals when ``n >= 2p``, else from ``sd(y)``.
    alpha : float, default=0.1
        Miscoverage of the intervals, also the ForwardStop level.
    k : int, default=None
        Step to test at. Defaults to all steps for ``'active'`` and
        ``'aic'``; required for ``'all'``.
    mode : {'active', 'all', 'aic'}, default='active'
        ``'active'`` tests the variable entering at each of the first ``k``
        steps given the path so far. ``'all'`` tests every coefficient of
        the least squares fit on the model after ``k`` steps. ``'aic'`` does
        the same at the step chosen by :func:`aic_stop`, also conditioning
        on that choice.
    grid_width_factor : float, default=25
        Half width of the interval search grid in standard errors.
    grid_points : int, default=1000
        Number of points of the interval search grid.
    aic_mult : float, default=2
        Penalty per degree of freedom for ``'aic'``.
    aic_patience : int, default=2
        Consecutive non-improving steps that stop the AIC rule.
    alternative : {'two-sided', 'greater'}, default='two-sided'

    Returns
    -------
    result : LarInference

    Raises
    ------
    InvalidInputError
        For out of range arguments.
    InsufficientPathError
        If ``k`` exceeds the number of computed steps.
    """
    if not isinstance(path, LarPath):
        raise InvalidInputError('path must be a LarPath, got %s'
                                % type(path).__name__)
    _check_args(sigma, alpha, k, mode, grid_width_factor, grid_points)

    if k is None:
        if mode == 'all':
            raise InvalidInputError("k must be specified when mode='all'")
        k = path.n_steps
    k = int(k)
    if k > path.n_steps:
        raise InsufficientPathError(
            'Inference at step %i requires %i steps of the lar path, only %i '
            'were computed' % (k, k, path.n_steps))

    X, y = path.X, path.y
    n_samples = X.shape[0]
    if sigma is None:
        sigma = estimate_sigma(X, y)

    pv_spacing = pv_asymp = pv_covtest = None

    if mode == 'active':
        G = path.gamma
        n_tests = k
        vars_ = np.asarray(path.actions[:k])
        sign = np.asarray(path.signs[:k])
        tests = []
        for j in range(1, k + 1):
            v = path.step_direction(j)
            Gj = G[:path.nk[j - 1]]
            tests.append((Gj, np.zeros(Gj.shape[0]), v / linalg.norm(v),
                          sign[j - 1] == -1))
        pv_spacing, pv_asymp, pv_covtest = _auxiliary_pvalues(path, sigma, k)
    else:
        if mode == 'aic':
            stop = aic_stop(X, y, path.actions[:k], path.df[:k], sigma,
                            mult=aic_mult, patience=aic_patience)
            khat, GG, uu = stop.khat, stop.gamma, stop.offset
            kk = khat
        else:
            khat, GG, uu = None, np.zeros((0, n_samples)), np.zeros(0)
            kk = k

        n_tests = kk
        vars_ = np.asarray(path.actions[:kk])
        sign = np.zeros(kk)
        tests = []
        if kk:
            G = np.vstack([GG, path.step_constraints(kk)])
            u = np.r_[uu, np.zeros(path.nk[kk - 1])]
            XA = X[:, vars_]
            M = linalg.solve(np.dot(XA.T, XA), XA.T, assume_a='pos')
            for j in range(kk):
                sign[j] = _sign(np.dot(M[j], y))
                v = sign[j] * M[j] / linalg.norm(M[j])
                # also condition on the sign of the estimate
                tests.append((np.vstack([G, -v]), np.r_[u, 0.], v,
                              sign[j] == -1))

    pv, vlo, vup = np.zeros(n_tests), np.zeros(n_tests), np.zeros(n_tests)
    vmat = np.zeros((n_tests, n_samples))
    ci, tailarea = np.zeros((n_tests, 2)), np.zeros((n_tests, 2))
    for j, (Gj, uj, vj, flip) in enumerate(tests):
        pv[j], vlo[j], vup[j] = poly_pval(y, Gj, uj, vj, sigma,
                                          alternative=alternative)
        vmat[j] = vj
        ci[j], tailarea[j] = poly_int(y, Gj, uj, vj, sigma, alpha,
                                      grid_width_factor=grid_width_factor,
                                      grid_points=grid_points, flip=flip)

    if mode == 'active':
        khat = forward_stop(pv, alpha)

    return LarInference(mode=mode, k=k, khat=khat, pv=pv, ci=ci,
                        tailarea=tailarea, vlo=vlo, vup=vup, vmat=vmat,
                        y=np.asarray(y), pv_spacing=pv_spacing,
                        pv_asymp=pv_asymp, pv_covtest=pv_covtest, vars=vars_,
                        sign=sign, sigma=sigma, alpha=alpha)
