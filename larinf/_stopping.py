"""
Rules choosing how many steps of a sequential path to keep.
"""
# License: BSD 3 clause

from collections import namedtuple

import numpy as np
from scipy import linalg

from .exceptions import InvalidInputError


def forward_stop(pvalues, alpha=0.1):
    """ForwardStop rule of G'Sell et al. (2016).

    Returns the largest ``k`` for which the average of ``-log(1 - p_i)``
    over the first ``k`` p-values is at most ``alpha``, or 0 when there is
    none.

    Parameters
    ----------
    pvalues : array-like of shape (n_steps,)
        Sequential p-values, in the order the steps were taken.
    alpha : float, default=0.1
        Target false discovery rate.

    Returns
    -------
    khat : int
    """
    pv = np.asarray(pvalues, dtype=np.float64).ravel()
    if not 0 <= alpha <= 1:
        raise InvalidInputError('alpha must be in [0, 1], got %r' % (alpha,))
    if pv.size and (np.nanmin(pv) < 0 or np.nanmax(pv) > 1):
        raise InvalidInputError('pvalues must be in [0, 1]')
    if not pv.size:
        return 0

    with np.errstate(divide='ignore'):
        cost = np.cumsum(-np.log1p(-pv))
    hits = np.flatnonzero(cost <= alpha * np.arange(1, pv.size + 1))
    return int(hits[-1] + 1) if hits.size else 0


class AicStop(namedtuple('AicStop', ['khat', 'gamma', 'offset', 'aic',
                                     'stopped'])):
    """Outcome of :func:`aic_stop`.

    Attributes
    ----------
    khat : int
        Selected step.
    gamma, offset : ndarray
        Constraint rows and offsets; the response satisfies
        ``gamma @ y <= offset`` exactly when the rule makes the same
        decisions.
    aic : ndarray
        Criterion at each step visited.
    stopped : bool
        Whether the rule stopped before the last step offered.
    """

    __slots__ = ()


def aic_stop(X, y, actions, df, sigma, mult=2, patience=2):
    """Stop a sequential path by an AIC-type criterion.

    The criterion at step ``i`` is ``RSS_i + mult * sigma^2 * df_i`` where
    ``RSS_i`` is the residual sum of squares of the least squares fit on the
    first ``i`` actions, and the first step is compared with the empty
    model. The walk stops once the criterion has failed to decrease
    ``patience`` times in a row and selects the step before that run
    started (possibly 0).

    Each decision compares the part of ``X[:, actions[i]]`` orthogonal to the
    previous actions with ``y``. The returned rows describe those decisions
    so that inference after the rule can condition on them.

    Parameters
    ----------
    X : ndarray of shape (n_samples, n_features)
    y : ndarray of shape (n_samples,)
    actions : array-like of int
        Variables in the order they entered.
    df : array-like of int
        Degrees of freedom at each step.
    sigma : float
    mult : float, default=2
        Penalty per degree of freedom, in units of ``sigma^2``.
    patience : int, default=2
        Number of consecutive non-improving steps that ends the walk.

    Returns
    -------
    result : AicStop
    """
    if not mult > 0:
        raise InvalidInputError('mult must be positive, got %r' % (mult,))
    if patience < 1 or int(patience) != patience:
        raise InvalidInputError(
            'patience must be a positive integer, got %r' % (patience,))

    n_samples = y.shape[0]
    actions = np.asarray(actions, dtype=np.intp)
    k = actions.shape[0]
    aic = np.zeros(k)
    rows, offset = [], []
    bound = np.sqrt(mult) * sigma
    count, stopped = 0, False
    if k:
        # the empty model is the baseline for the first step
        aic_prev = np.dot(y, y) + mult * sigma ** 2 * (df[0] - 1)

    for i in range(k):
        XA = X[:, actions[:i + 1]]
        resid = y - np.dot(XA, linalg.lstsq(XA, y)[0])
        aic[i] = np.dot(resid, resid) + mult * sigma ** 2 * df[i]

        xj = X[:, actions[i]]
        if i == 0:
            xtil = xj
        else:
            Xprev = X[:, actions[:i]]
            xtil = xj - np.dot(Xprev, linalg.lstsq(Xprev, xj)[0])
        xtil = xtil / np.sqrt(np.dot(xtil, xtil))
        s = 1. if np.dot(xtil, y) >= 0 else -1.

        if aic[i] <= aic_prev:
            # |xtil' y| >= sqrt(mult) sigma
            rows.append(-s * xtil)
            offset.append(-bound)
            count = 0
        else:
            rows.append(s * xtil)
            offset.append(bound)
            count += 1
            if count == patience:
                stopped = True
                break
        aic_prev = aic[i]

    n_visited = len(rows)
    khat = n_visited - patience if stopped else k
    return AicStop(khat=khat,
                   gamma=np.array(rows).reshape(n_visited, n_samples),
                   offset=np.array(offset), aic=aic[:n_visited],
                   stopped=stopped)
