"""
Estimator interface to the LAR path and its selective inference.
"""
# License: BSD 3 clause

import numpy as np
from sklearn.base import BaseEstimator, RegressorMixin
from sklearn.utils.validation import check_array, check_is_fitted

from ._inference import infer
from ._least_angle import build_path


class SelectiveLars(RegressorMixin, BaseEstimator):
    """Least Angle Regression with selective inference on its steps.

    Parameters
    ----------
    max_steps : int, default=2000
        Maximum number of knots to compute.
    min_lambda : float, default=0
        Stop the path once a knot falls below this value.
    fit_intercept : bool, default=True
        Whether to center the data before computing the path.
    normalize : bool, default=True
        Whether to scale the columns of X to unit norm before computing the
        path.
    sigma : float, default=None
        Noise standard deviation, estimated when None.
    alpha : float, default=0.1
        Miscoverage of the intervals and ForwardStop level.
    mode : {'active', 'all', 'aic'}, default='active'
        Kind of inference, see :func:`larinf.infer`.
    k : int, default=None
        Step at which to test.
    verbose : int, default=0
        Controls output verbosity.

    Attributes
    ----------
    path_ : LarPath
    inference_ : LarInference
    coef_ : ndarray of shape (n_features,)
        Least squares coefficients on the final active set when the path is
        complete, else the coefficients at the last knot.
    intercept_ : float
    lambdas_ : ndarray of shape (n_steps,)
    active_ : ndarray of shape (n_steps,)
        Variables in the order they entered.
    pvalues_ : ndarray
        Selective p-values of the tested variables.
    n_iter_ : int
        Number of knots computed.

    Examples
    --------
    >>> import numpy as np
    >>> from larinf import SelectiveLars
    >>> rng = np.random.default_rng(0)
    >>> X = rng.standard_normal((50, 5))
    >>> y = 3 * X[:, 0] + rng.standard_normal(50)
    >>> model = SelectiveLars(sigma=1.).fit(X, y)
    >>> int(model.active_[0])
    0
    """

    def __init__(self, max_steps=2000, min_lambda=0., fit_intercept=True,
                 normalize=True, sigma=None, alpha=0.1, mode='active', k=None,
                 verbose=0):
        self.max_steps = max_steps
        self.min_lambda = min_lambda
        self.fit_intercept = fit_intercept
        self.normalize = normalize
        self.sigma = sigma
        self.alpha = alpha
        self.mode = mode
        self.k = k
        self.verbose = verbose

    def fit(self, X, y):
        """Compute the path and the selective inference.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
        y : array-like of shape (n_samples,)

        Returns
        -------
        self : object
        """
        path = build_path(X, y, max_steps=self.max_steps,
                          min_lambda=self.min_lambda,
                          with_intercept=self.fit_intercept,
                          normalize=self.normalize, verbose=self.verbose)
        self.path_ = path
        self.inference_ = infer(path, sigma=self.sigma, alpha=self.alpha,
                                k=self.k, mode=self.mode)

        if path.complete_path:
            self.coef_ = np.array(path.bls)
        else:
            self.coef_ = np.array(path.coefs[:, -1])
        self.intercept_ = float(path.by - np.dot(path.bx, self.coef_))
        self.lambdas_ = np.array(path.lambdas)
        self.active_ = np.array(path.actions)
        self.pvalues_ = self.inference_.pv
        self.n_iter_ = path.n_steps
        self.n_features_in_ = path.X.shape[1]
        return self

    def predict(self, X):
        """Predict using the final coefficients of the path."""
        check_is_fitted(self, 'coef_')
        X = check_array(X, dtype=np.float64)
        return np.dot(X, self.coef_) + self.intercept_
