import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal
from sklearn.exceptions import NotFittedError

from larinf import SelectiveLars


def test_fit_complete_path(sparse_data, sparse_path):
    X, y = sparse_data
    model = SelectiveLars(sigma=1.).fit(X, y)

    Xc = np.c_[np.ones(50), X]
    ols = np.linalg.lstsq(Xc, y, rcond=None)[0]
    assert_allclose(model.coef_, ols[1:], atol=1e-8)
    assert model.intercept_ == pytest.approx(ols[0])
    assert_allclose(model.predict(X), np.dot(Xc, ols), atol=1e-8)

    assert model.n_iter_ == 10
    assert model.n_features_in_ == 10
    assert_array_equal(model.active_, sparse_path.actions)
    assert_allclose(model.lambdas_, sparse_path.lambdas)
    assert model.pvalues_.shape == (10,)
    assert model.inference_.mode == 'active'


def test_fit_truncated_path(sparse_data):
    X, y = sparse_data
    model = SelectiveLars(max_steps=4, sigma=1., mode='all', k=2).fit(X, y)
    assert model.n_iter_ == 4
    assert_allclose(model.coef_, model.path_.coefs[:, -1])
    assert np.count_nonzero(model.coef_) == 3
    assert model.pvalues_.shape == (2,)
    assert_allclose(model.predict(X[:3]),
                    np.dot(X[:3], model.coef_) + model.intercept_)


def test_get_params_round_trip():
    model = SelectiveLars(alpha=0.05, mode='aic')
    params = model.get_params()
    assert params['alpha'] == 0.05
    assert params['mode'] == 'aic'
    assert SelectiveLars(**params).get_params() == params


def test_predict_before_fit():
    with pytest.raises(NotFittedError):
        SelectiveLars().predict(np.ones((2, 3)))
