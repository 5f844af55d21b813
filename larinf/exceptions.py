"""
The :mod:`larinf.exceptions` module includes all custom warnings and error
classes used across larinf.
"""

__all__ = ['InvalidInputError',
           'RankDeficiencyError',
           'InsufficientPathError',
           'InferenceWarning']


class InvalidInputError(ValueError):
    """Exception raised for malformed arguments.

    This covers mismatched dimensions between ``X`` and ``y``, non-finite
    data, ``sigma <= 0``, ``alpha`` outside ``(0, 1)`` and step indices
    smaller than one. It inherits from ValueError so that callers already
    catching ValueError keep working.
    """


class RankDeficiencyError(ValueError):
    """Exception raised when a column entering the active set is linearly
    dependent on the columns already in it.

    This violates the general position assumption on the design matrix.
    """


class InsufficientPathError(ValueError):
    """Exception raised when an inference needs more of the path than was
    computed.

    Paths truncated by ``max_steps`` or ``min_lambda`` do not carry the
    knots after the last recorded step, so tests that need the next knot
    (or the least squares refit of a complete path) cannot be carried out.

    Examples
    --------
    >>> import numpy as np
    >>> from larinf import build_path, asymp_pval
    >>> from larinf.exceptions import InsufficientPathError
    >>> rng = np.random.default_rng(0)
    >>> X, y = rng.standard_normal((20, 5)), rng.standard_normal(20)
    >>> path = build_path(X, y, max_steps=2)
    >>> try:
    ...     asymp_pval(path, 1., 2)
    ... except InsufficientPathError as e:
    ...     print(e)
    Asymptotic p-values at step 2 require 3 steps of the lar path
    """


class InferenceWarning(UserWarning):
    """Warning used to flag inference results that rest on a fallback.

    Raised when the noise level is estimated from the marginal standard
    deviation of ``y`` or when an auxiliary p-value had to be left out.
    """
