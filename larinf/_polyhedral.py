"""
Tests and confidence intervals for a linear contrast of a Gaussian vector
conditioned on a polyhedron ``{y : G y <= u}``.
"""
# License: BSD 3 clause

import numpy as np
from scipy import optimize
from scipy.stats import norm

from .exceptions import InvalidInputError

# below this the direct tail ratio is replaced by the rational approximation
_DIRECT_FLOOR = 1e-100


def _mills(z):
    # Bryc (2002): Q(z) ~ _mills(z) * exp(-z^2 / 2) for z >= 0
    return ((z * z + 5.575192695 * z + 12.7743632) /
            (z ** 3 * np.sqrt(2 * np.pi) + 14.38718147 * z * z +
             31.53531977 * z + 2 * 12.77436324))


def _approx_surv(z, a, b):
    """Rational approximation of P(Z > z | a <= Z <= b), standard Z, for a
    window in the upper tail."""
    with np.errstate(all='ignore'):
        term1 = np.where(np.isfinite(a),
                         _mills(a) * np.exp(-(a * a - z * z) / 2),
                         np.exp(z * z / 2))
        term2 = np.where(np.isfinite(b),
                         _mills(b) * np.exp(-(b * b - z * z) / 2), 0.)
        p = (_mills(z) - term2) / (term1 - term2)
    return np.clip(p, 0, 1)


def _std_surv(z, a, b):
    z, a, b = (np.array(t, dtype=np.float64) for t in
               np.broadcast_arrays(z, a, b))
    # reflect windows in the lower tail to the upper tail
    with np.errstate(invalid='ignore'):
        flip = a + b < 0
    z[flip], a[flip], b[flip] = -z[flip], -b[flip], -a[flip]

    num = norm.sf(z) - norm.sf(b)
    den = norm.sf(a) - norm.sf(b)
    with np.errstate(divide='ignore', invalid='ignore'):
        p = num / den
    point = ~(a < b)
    tail = (~(den > _DIRECT_FLOOR) | ~np.isfinite(p)) & ~point
    if np.any(tail):
        p[tail] = _approx_surv(z[tail], a[tail], b[tail])
    # zero-width window
    p[point] = 0.5
    p = np.clip(p, 0, 1)
    p[flip] = 1 - p[flip]
    return p


def tnorm_surv(z, mean, sd, a, b):
    """Survival function of a truncated Gaussian.

    Returns ``P(Z > z | a <= Z <= b)`` for ``Z ~ N(mean, sd^2)``. ``mean`` can
    be an array, in which case an array of the same shape is returned.

    When the window sits far out in a tail, ratios of Gaussian tail areas
    underflow; there the rational approximation of Bryc (2002) to the
    Gaussian tail is used instead. A window of zero width gives 0.5.

    Parameters
    ----------
    z : float
        Observed value, clipped to ``[a, b]``.
    mean : float or ndarray
    sd : float
    a, b : float
        Truncation limits, possibly infinite.

    Returns
    -------
    p : float or ndarray
    """
    z = min(max(z, a), b)
    mean = np.asarray(mean, dtype=np.float64)
    p = np.empty(mean.shape)
    p[mean == -np.inf] = 0.
    p[mean == np.inf] = 1.
    finite = np.isfinite(mean)
    m = mean[finite]
    p[finite] = _std_surv((z - m) / sd, (a - m) / sd, (b - m) / sd)
    return float(p) if p.ndim == 0 else p


def truncation_limits(y, G, u, v):
    """Interval ``[vlo, vup]`` in which ``v' y`` is free to move while the
    rest of ``y`` stays fixed and ``G y <= u`` holds.

    Rows of ``G`` orthogonal to ``v`` do not restrict ``v' y`` and are
    ignored.

    Returns
    -------
    vlo, vup : float
    """
    z = np.dot(v, y)
    vv = np.dot(v, v)
    rho = np.dot(G, v) / vv
    with np.errstate(divide='ignore', invalid='ignore'):
        vec = (u - np.dot(G, y) + rho * z) / rho
    lower, upper = vec[rho < 0], vec[rho > 0]
    vlo = float(lower.max()) if lower.size else -np.inf
    vup = float(upper.min()) if upper.size else np.inf
    return vlo, vup


def poly_pval(y, G, u, v, sigma, alternative='two-sided'):
    """Selective p-value for ``H0: v' mu = 0`` given ``G y <= u``.

    Under the null ``v' y`` is Gaussian with standard deviation
    ``sigma * ||v||``, truncated to :func:`truncation_limits`.

    Parameters
    ----------
    y : ndarray of shape (n_samples,)
    G : ndarray of shape (n_constraints, n_samples)
    u : ndarray of shape (n_constraints,)
    v : ndarray of shape (n_samples,)
    sigma : float
        Noise standard deviation.
    alternative : {'two-sided', 'greater'}, default='two-sided'

    Returns
    -------
    pv : float
    vlo, vup : float
        Truncation limits of ``v' y``.
    """
    if alternative not in ('two-sided', 'greater'):
        raise InvalidInputError(
            "alternative must be 'two-sided' or 'greater', got %r"
            % (alternative,))
    z = np.dot(v, y)
    sd = sigma * np.sqrt(np.dot(v, v))
    vlo, vup = truncation_limits(y, G, u, v)
    surv = tnorm_surv(z, 0., sd, vlo, vup)
    if alternative == 'greater':
        return surv, vlo, vup
    return 2 * min(surv, 1 - surv), vlo, vup


def _bisect(lo, hi, fun, val):
    flo, fhi = fun(lo) - val, fun(hi) - val
    if not flo * fhi < 0:
        return hi if abs(fhi) < abs(flo) else lo
    return optimize.brentq(lambda t: fun(t) - val, lo, hi)


def _grid_search(grid, fun, val1, val2):
    """End points where the increasing function ``fun`` crosses ``val1`` and
    ``val2``, located on ``grid`` and refined between neighbouring points."""
    n = grid.shape[0]
    vals = fun(grid)
    ii = np.flatnonzero(vals >= val1)
    jj = np.flatnonzero(vals <= val2)
    if not ii.size:
        return grid[-1], np.inf
    if not jj.size:
        return -np.inf, grid[0]

    i1, i2 = ii[0], jj[-1]
    lo = -np.inf if i1 == 0 else _bisect(grid[i1 - 1], grid[i1], fun, val1)
    hi = np.inf if i2 == n - 1 else _bisect(grid[i2], grid[i2 + 1], fun, val2)
    return lo, hi


def poly_int(y, G, u, v, sigma, alpha, grid_width_factor=25,
             grid_points=1000, flip=False):
    """Selective confidence interval for ``v' mu`` given ``G y <= u``.

    The truncated survival function of the observed ``v' y`` increases
    with the mean, so the interval is found by locating where it crosses
    ``alpha / 2`` and ``1 - alpha / 2`` on a grid of means spanning
    ``grid_width_factor`` standard errors either side of zero.

    Parameters
    ----------
    y, G, u, v, sigma
        See :func:`poly_pval`.
    alpha : float
        Miscoverage level.
    grid_width_factor : float, default=25
    grid_points : int, default=1000
    flip : bool, default=False
        Report the interval for ``-v' mu``.

    Returns
    -------
    interval : tuple of float
    tailarea : tuple of float
        Achieved lower and upper tail areas at the end points.
    """
    z = np.dot(v, y)
    sd = sigma * np.sqrt(np.dot(v, v))
    vlo, vup = truncation_limits(y, G, u, v)

    grid = np.linspace(-grid_width_factor * sd, grid_width_factor * sd,
                       grid_points)

    def fun(theta):
        return tnorm_surv(z, theta, sd, vlo, vup)

    lo, hi = _grid_search(grid, fun, alpha / 2, 1 - alpha / 2)
    tailarea = (fun(lo), 1 - fun(hi))
    if flip:
        return (-hi, -lo), tailarea[::-1]
    return (lo, hi), tailarea
