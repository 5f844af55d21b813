"""
Incremental QR factorization of the active columns along a LAR path.
"""
# License: BSD 3 clause

import numpy as np
from scipy import linalg

from .exceptions import InvalidInputError, RankDeficiencyError


class QRMaintainer:
    """Complete QR factorization of a growing set of columns.

    The factorization is kept in the form ``X1 = Q1 R`` where ``X1`` holds
    the columns added so far, ``Q1`` has orthonormal columns spanning them,
    ``Q2`` spans the orthogonal complement of ``Q1`` in R^n and ``R`` is
    upper triangular. Both bases live side by side in one square matrix.

    Adding a column costs a single Householder reflection of ``Q2``
    instead of a fresh factorization of ``X1``.

    Parameters
    ----------
    n_samples : int
        Ambient dimension, i.e. the number of rows of the columns that are
        going to be added.
    rank_tol : float, default=1e-10
        A new column is declared linearly dependent on the current span
        when the norm of its component outside the span is below
        ``rank_tol`` times its own norm.

    Attributes
    ----------
    Q : ndarray of shape (n_samples, n_samples)
        Orthogonal matrix ``[Q1, Q2]``.
    R : ndarray of shape (n_active, n_active)
        Upper triangular factor.
    """

    def __init__(self, n_samples, rank_tol=1e-10):
        self.Q = np.eye(n_samples)
        self.R = np.zeros((0, 0))
        self.rank_tol = rank_tol
        self._nrm2, = linalg.get_blas_funcs(('nrm2',), (self.Q,))

    @classmethod
    def from_columns(cls, X1, rank_tol=1e-10):
        """Factor the columns of ``X1`` by adding them one at a time."""
        X1 = np.asarray(X1, dtype=np.float64)
        qr = cls(X1.shape[0], rank_tol=rank_tol)
        for column in X1.T:
            qr.update(column)
        return qr

    @property
    def n_active(self):
        return self.R.shape[0]

    @property
    def Q1(self):
        return self.Q[:, :self.n_active]

    @property
    def Q2(self):
        return self.Q[:, self.n_active:]

    def update(self, column):
        """Append ``column`` to the factored columns.

        ``Q2`` is reflected so that the projection of ``column`` onto the
        complement lines up with its first basis vector; that vector then
        moves into ``Q1`` and ``R`` gains one row and one column.

        Parameters
        ----------
        column : array-like of shape (n_samples,)

        Raises
        ------
        RankDeficiencyError
            If ``column`` lies (numerically) in the span of ``Q1``.
        """
        column = np.asarray(column, dtype=np.float64)
        n, r = self.Q.shape[0], self.n_active
        if column.shape != (n,):
            raise InvalidInputError(
                'column must have shape (%d,), got %r' % (n, column.shape))

        Q2 = self.Q2
        w = np.dot(Q2.T, column)
        norm_w = self._nrm2(w) if w.size else 0.
        norm_col = self._nrm2(column)
        floor = self.rank_tol * max(norm_col, np.finfo(float).tiny)
        if r == n or norm_w <= floor:
            raise RankDeficiencyError(
                'Column %d of the active set is linearly dependent on the '
                'previous %d columns; the design matrix is not in general '
                'position.' % (r + 1, r))

        # Householder vector h with (I - 2 h h' / h'h) w = diag * e1
        diag = -np.copysign(norm_w, w[0])
        h = w.copy()
        h[0] -= diag
        Q2 -= np.outer(np.dot(Q2, h), h * (2. / np.dot(h, h)))
        if diag < 0:
            Q2[:, 0] *= -1
            diag = -diag

        R = np.zeros((r + 1, r + 1))
        R[:r, :r] = self.R
        R[:r, r] = np.dot(self.Q1.T, column)
        R[r, r] = diag
        self.R = R
        return self

    def downdate(self, position):
        """Remove the factored column at ``position``.

        The rotations restoring the triangular shape of ``R`` are applied to
        ``Q``; the last direction of ``Q1`` moves back into ``Q2``.

        Parameters
        ----------
        position : int
            Zero-based index of the column among the factored columns.
        """
        n, r = self.Q.shape[0], self.n_active
        if not 0 <= position < r:
            raise InvalidInputError(
                'position must be in [0, %d), got %r' % (r, position))
        if r == 1:
            self.R = np.zeros((0, 0))
            return self
        R_full = np.zeros((n, r))
        R_full[:r] = self.R
        Q, R_full = linalg.qr_delete(self.Q, R_full, position, which='col',
                                     check_finite=False)
        self.Q = Q
        self.R = np.triu(R_full[:r - 1, :r - 1])
        return self

    def solve(self, rhs, trans=0):
        """Solve ``R x = rhs``, or ``R' x = rhs`` when ``trans=1``."""
        return linalg.solve_triangular(self.R, rhs, trans=trans, lower=False,
                                       check_finite=False)
