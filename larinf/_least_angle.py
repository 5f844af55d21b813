"""
Least Angle Regression path together with the polyhedral description of
its selection events. The constraint rows recorded along the path are what
the conditional tests in :mod:`larinf._inference` condition on.
"""
# License: BSD 3 clause

import sys
from collections import namedtuple

import numpy as np
from scipy import interpolate
from sklearn.utils import check_array, check_X_y

from ._qr_update import QRMaintainer
from .exceptions import InvalidInputError, RankDeficiencyError

# knots preallocated before the buffers start doubling
_INITIAL_BUFFER = 500


def _sign(x):
    """Elementwise sign with zero mapped to +1."""
    return np.where(np.asarray(x) >= 0, 1., -1.)


def _frozen(a):
    a = np.asarray(a)
    a.setflags(write=False)
    return a


def _check_xy(X, y):
    try:
        X, y = check_X_y(X, y, dtype=np.float64, y_numeric=True,
                         ensure_min_samples=2)
    except ValueError as e:
        raise InvalidInputError(str(e)) from e
    return X, y


def standardize(X, y, with_intercept=True, normalize=True):
    """Center and scale the design matrix and the response.

    Parameters
    ----------
    X : ndarray of shape (n_samples, n_features)
    y : ndarray of shape (n_samples,)
    with_intercept : bool, default=True
        Center the columns of ``X`` and ``y``.
    normalize : bool, default=True
        Scale the (centered) columns of ``X`` to unit Euclidean norm.

    Returns
    -------
    X, y : ndarray
        Transformed copies.
    bx : ndarray of shape (n_features,)
        Column means removed from ``X`` (zeros without intercept).
    by : float
        Mean removed from ``y`` (zero without intercept).
    sx : ndarray of shape (n_features,)
        Column norms ``X`` was divided by (ones without normalization).
    """
    n_features = X.shape[1]
    if with_intercept:
        bx = X.mean(axis=0)
        by = float(y.mean())
        X = X - bx
        y = y - by
    else:
        bx = np.zeros(n_features)
        by = 0.
        X = X.copy()
        y = y.copy()

    if normalize:
        sx = np.sqrt(np.sum(X ** 2, axis=0))
        if np.any(sx == 0):
            raise InvalidInputError(
                'Columns %s of X have zero norm after centering.'
                % np.flatnonzero(sx == 0).tolist())
        X /= sx
    else:
        sx = np.ones(n_features)
    return X, y, bx, by, sx


class LarPath(namedtuple('LarPath', [
        'lambdas', 'actions', 'signs', 'df', 'coefs', 'gamma', 'nk', 'mp',
        'bls', 'complete_path', 'X', 'y', 'bx', 'by', 'sx', 'intercept',
        'normalize'])):
    """Least angle regression path returned by :func:`build_path`.

    All arrays are read-only.

    Attributes
    ----------
    lambdas : ndarray of shape (n_steps,)
        Knots of the path, strictly decreasing.
    actions : ndarray of shape (n_steps,)
        Index of the variable entering at each knot.
    signs : ndarray of shape (n_steps,)
        Sign of each entering variable.
    df : ndarray of shape (n_steps,)
        Size of the active set to the right of each knot (+1 with an
        intercept).
    coefs : ndarray of shape (n_features, n_steps)
        Coefficients at each knot, on the scale of the original ``X``.
    gamma : ndarray of shape (n_constraints, n_samples)
        Constraint rows; the response the path was built from satisfies
        ``gamma @ y <= 0``.
    nk : ndarray of shape (n_steps,)
        Number of rows of ``gamma`` after each step; row ``nk[k - 1] - 1``
        is the constraint of the variable entering at step ``k``.
    mp : ndarray of shape (n_steps,)
        Lower truncation limit of each knot used by the spacing test.
    bls : ndarray of shape (n_features,) or None
        Least squares coefficients on the final active set, only for
        complete paths.
    complete_path : bool
        False when the path was cut by ``max_steps`` or ``min_lambda``.
    X, y : ndarray
        Standardized design and response the path was computed on.
    bx, by, sx : ndarray, float, ndarray
        Standardization constants, see :func:`standardize`.
    intercept, normalize : bool
    """

    __slots__ = ()

    @property
    def n_steps(self):
        return self.actions.shape[0]

    def step_constraints(self, k):
        """Rows of ``gamma`` describing the first ``k`` steps."""
        return self.gamma[:self.nk[k - 1]]

    def step_direction(self, k):
        """Direction whose inner product with ``y`` is the ``k``-th knot
        (up to scale)."""
        return -self.gamma[self.nk[k - 1] - 1]


def _competing_bound(c, winner, y):
    """Smallest value the winning statistic can take before one of the other
    columns of ``c`` overtakes it, clipped at zero.

    Competitors whose ratio denominator is not positive can never be the
    tightest and are left out.
    """
    if c.shape[1] < 2:
        return 0.
    cw = c[:, winner]
    others = np.delete(c, winner, axis=1)
    ratio = np.dot(others.T, cw) / np.dot(cw, cw)
    keep = 1 - ratio > 0
    if not np.any(keep):
        return 0.
    crit = ((np.dot(others.T[keep], y) - ratio[keep] * np.dot(cw, y)) /
            (1 - ratio[keep]))
    return max(float(crit.max()), 0.)


def build_path(X, y, *, max_steps=2000, min_lambda=0., with_intercept=True,
               normalize=True, verbose=0):
    """Compute the Least Angle Regression path and its selection event.

    At each knot the variable whose absolute inner product with the
    current residual first reaches the common value of the active set
    enters, with the sign of that inner product. Alongside the knots the
    function records the rows of a matrix ``Gamma`` such that the
    responses producing the same sequence of variables and signs are
    exactly those with ``Gamma @ y <= 0``.

    Parameters
    ----------
    X : array-like of shape (n_samples, n_features)
        Design matrix, assumed to have columns in general position.
    y : array-like of shape (n_samples,)
        Response.
    max_steps : int, default=2000
        Maximum number of knots to compute.
    min_lambda : float, default=0
        Stop once a knot falls below this value.
    with_intercept : bool, default=True
        Center ``X`` and ``y`` before computing the path.
    normalize : bool, default=True
        Scale the columns of ``X`` to unit norm before computing the path.
        Coefficients are returned on the original scale.
    verbose : int, default=0
        Controls output verbosity.

    Returns
    -------
    path : LarPath
        The knots, actions, signs, coefficients and constraint system.

    Raises
    ------
    InvalidInputError
        If ``X`` and ``y`` do not match or contain non-finite values.
    RankDeficiencyError
        If a column outside the model lies in the span of the active ones.

    See Also
    --------
    infer
    coef_path

    References
    ----------
    .. [1] "Least Angle Regression", Efron et al.
           http://statweb.stanford.edu/~tibs/ftp/lars.pdf
    .. [2] "Exact post-selection inference for sequential regression
           procedures", Tibshirani et al., JASA 2016.
    """
    X, y = _check_xy(X, y)
    if max_steps < 1 or int(max_steps) != max_steps:
        raise InvalidInputError(
            'max_steps must be a positive integer, got %r' % (max_steps,))
    if not min_lambda >= 0:
        raise InvalidInputError(
            'min_lambda must be non-negative, got %r' % (min_lambda,))
    max_steps = int(max_steps)

    X, y, bx, by, sx = standardize(X, y, with_intercept, normalize)
    n_samples, n_features = X.shape
    max_active = min(n_samples - int(with_intercept), n_features)

    Cov = np.dot(X.T, y)
    C_idx = int(np.argmax(np.abs(Cov)))
    C = float(np.fabs(Cov[C_idx]))
    sign = float(_sign(Cov[C_idx]))

    buf = min(max_steps, _INITIAL_BUFFER)
    lambdas = np.zeros(buf)
    actions = np.zeros(buf, dtype=np.intp)
    df = np.zeros(buf, dtype=np.intp)
    coefs = np.zeros((buf, n_features))
    lambdas[0] = C
    actions[0] = C_idx

    # the winner beats every other column in both signs, and is positive
    x_hit = X[:, C_idx]
    rest = np.delete(X, C_idx, axis=1).T
    gamma = [-sign * x_hit - rest, -sign * x_hit + rest,
             -sign * x_hit[np.newaxis, :]]
    n_rows = 2 * (n_features - 1) + 1
    nk = [n_rows]
    mp = [_competing_bound(X * _sign(Cov), C_idx, y)]

    active, sign_active = [C_idx], [sign]
    inactive = np.delete(np.arange(n_features), C_idx)
    qr = QRMaintainer(n_samples).update(x_hit)

    if verbose:
        if verbose > 1:
            print("Step\t\tAdded\t\tActive set size\t\tLambda")
            print("%s\t\t%s\t\t%s\t\t%.3f" % (1, C_idx, 1, C))
        else:
            sys.stdout.write('.')
            sys.stdout.flush()

    n_iter = 1
    while n_iter < max_steps and lambdas[n_iter - 1] >= min_lambda:
        if n_iter >= lambdas.shape[0]:
            # double the buffers
            add = lambdas.shape[0]
            lambdas = np.resize(lambdas, n_iter + add)
            lambdas[-add:] = 0
            actions = np.resize(actions, n_iter + add)
            actions[-add:] = 0
            df = np.resize(df, n_iter + add)
            df[-add:] = 0
            coefs = np.resize(coefs, (n_iter + add, n_features))
            coefs[-add:] = 0

        # fit along the current segment is X1 (a - lambda * b)
        Q1 = qr.Q1
        s = np.asarray(sign_active)
        a = qr.solve(np.dot(Q1.T, y))
        b = qr.solve(qr.solve(s, trans=1))
        X1, X2 = X[:, active], X[:, inactive]
        aa = np.dot(X2.T, y - np.dot(X1, a))
        bb = np.dot(X2.T, np.dot(X1, b))

        if len(active) == max_active:
            hit = 0.
        else:
            shits = _sign(aa)
            with np.errstate(divide='ignore', invalid='ignore'):
                hits = aa / (shits - bb)
            # nothing can hit above the current knot
            hits[~(hits <= lambdas[n_iter - 1])] = 0
            C_idx = int(np.argmax(hits))
            hit = float(hits[C_idx])

        if hit <= 0:
            break

        lambdas[n_iter] = hit
        actions[n_iter] = inactive[C_idx]
        df[n_iter] = len(active)
        coefs[n_iter, active] = a - hit * b

        X2perp = X2 - np.dot(Q1, np.dot(Q1.T, X2))
        dependent = (np.sqrt(np.sum(X2perp ** 2, axis=0)) <=
                     qr.rank_tol * np.sqrt(np.sum(X2 ** 2, axis=0)))
        if np.any(dependent):
            raise RankDeficiencyError(
                'Columns %s of X lie in the span of the active columns %s; '
                'the design matrix is not in general position.'
                % (inactive[dependent].tolist(), active))
        with np.errstate(divide='ignore', invalid='ignore'):
            c = X2perp / (shits - bb)
        winner = c[:, C_idx]
        # a zero denominator leaves the candidate out of the competition
        rivals = np.all(np.isfinite(c), axis=0)
        rivals[C_idx] = False
        gamma.append(-shits[:, np.newaxis] * X2perp.T)
        gamma.append(c[:, rivals].T - winner)
        gamma.append(-winner[np.newaxis, :])
        n_rows += inactive.shape[0] + int(rivals.sum()) + 1
        nk.append(n_rows)
        rivals[C_idx] = True
        mp.append(_competing_bound(c[:, rivals],
                                   int(rivals[:C_idx].sum()), y))

        active.append(int(inactive[C_idx]))
        sign_active.append(float(shits[C_idx]))
        inactive = np.delete(inactive, C_idx)
        qr.update(X[:, active[-1]])

        if verbose > 1:
            print("%s\t\t%s\t\t%s\t\t%.3f" % (n_iter + 1, active[-1],
                                              len(active), hit))
        elif verbose:
            sys.stdout.write('.')
            sys.stdout.flush()
        n_iter += 1

    lambdas = lambdas[:n_iter]
    actions = actions[:n_iter]
    df = df[:n_iter]
    coefs = coefs[:n_iter].T

    if n_iter >= max_steps:
        if verbose > 1:
            print("Reached the maximum number of steps (%i), skipping the "
                  "rest of the path." % max_steps)
        complete_path, bls = False, None
    elif lambdas[-1] < min_lambda:
        if verbose > 1:
            print("Reached the minimum lambda (%.3f), skipping the rest of "
                  "the path." % min_lambda)
        complete_path, bls = False, None
    else:
        # the last segment's a is the least squares fit on the active set
        complete_path = True
        bls = np.zeros(n_features)
        bls[active] = a
    if verbose == 1:
        sys.stdout.write('\n')

    if with_intercept:
        df += 1
    if normalize:
        coefs /= sx[:, np.newaxis]
        if bls is not None:
            bls /= sx

    return LarPath(
        lambdas=_frozen(lambdas), actions=_frozen(actions),
        signs=_frozen(sign_active), df=_frozen(df), coefs=_frozen(coefs),
        gamma=_frozen(np.vstack(gamma)),
        nk=_frozen(np.array(nk, dtype=np.intp)),
        mp=_frozen(np.array(mp)),
        bls=None if bls is None else _frozen(bls),
        complete_path=complete_path, X=_frozen(X), y=_frozen(y),
        bx=_frozen(bx), by=by, sx=_frozen(sx), intercept=with_intercept,
        normalize=normalize)


def _knots(path):
    if path.complete_path:
        return np.r_[path.lambdas, 0.], np.c_[path.coefs, path.bls]
    return np.asarray(path.lambdas), np.asarray(path.coefs)


def coef_path(path, s, mode='step'):
    """Coefficients along a LAR path, interpolated between knots.

    Parameters
    ----------
    path : LarPath
    s : float or array-like
        Positions on the path. With ``mode='step'`` these are step numbers
        in ``[0, k]`` (knot ``j`` is step ``j``, values below 1 map to the
        first knot); with ``mode='lambda'`` they are penalty values, values
        above the first knot map to it.
    mode : {'step', 'lambda'}, default='step'

    Returns
    -------
    coef : ndarray of shape (n_features,) or (n_features, len(s))

    Notes
    -----
    For a complete path the least squares fit is the final knot, at step
    ``n_steps + 1`` and ``lambda = 0``.
    """
    lambdas, beta = _knots(path)
    k = lambdas.shape[0]
    s_arr = np.atleast_1d(np.asarray(s, dtype=np.float64))

    if mode == 'step':
        if s_arr.min() < 0 or s_arr.max() > k:
            raise InvalidInputError('s must be between 0 and %i' % k)
        knots = np.arange(1, k + 1, dtype=np.float64)
        s_arr = np.maximum(s_arr, 1.)
    elif mode == 'lambda':
        if s_arr.min() < lambdas.min():
            raise InvalidInputError('s must be >= %0.3f' % lambdas.min())
        knots, beta = lambdas[::-1], beta[:, ::-1]
        s_arr = np.minimum(s_arr, lambdas[0])
    else:
        raise InvalidInputError(
            "mode must be 'step' or 'lambda', got %r" % (mode,))

    if k == 1:
        coef = np.repeat(beta, s_arr.shape[0], axis=1)
    else:
        coef = interpolate.make_interp_spline(knots, beta, k=1,
                                              axis=1)(s_arr)
    return coef[:, 0] if np.ndim(s) == 0 else coef


def predict_path(path, s, newX=None, mode='step'):
    """Predictions of the LAR fit at positions ``s`` along the path.

    Without ``newX`` the training design is used.
    """
    coef = coef_path(path, s, mode=mode)
    if newX is None:
        newX = path.X * path.sx
    else:
        newX = check_array(newX, dtype=np.float64)
        if newX.shape[1] != path.X.shape[1]:
            raise InvalidInputError(
                'newX has %d features, the path was built on %d'
                % (newX.shape[1], path.X.shape[1]))
        newX = newX - path.bx
    return np.dot(newX, coef) + path.by
