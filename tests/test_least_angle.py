import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from larinf import (_least_angle, build_path, coef_path, predict_path,
                    standardize)
from larinf.exceptions import InvalidInputError, RankDeficiencyError


def test_first_step_and_completion(sparse_data, sparse_path):
    X, y = sparse_data
    path = sparse_path
    Xs, ys, _, _, _ = standardize(X, y)
    corr = np.dot(Xs.T, ys)

    assert path.complete_path
    assert path.n_steps == 10
    assert path.actions[0] == np.argmax(np.abs(corr))
    assert path.signs[0] == np.sign(corr[path.actions[0]])
    assert_allclose(path.lambdas[0], np.max(np.abs(corr)))
    # the strong signals enter first
    assert set(path.actions[:2]) == {2, 7}


def test_knots_decrease_and_actions_are_distinct(sparse_path):
    lambdas = sparse_path.lambdas
    assert np.all(np.diff(lambdas) < 0)
    assert lambdas[-1] > 0
    assert len(set(sparse_path.actions.tolist())) == sparse_path.n_steps
    assert_array_equal(sparse_path.df, np.arange(10) + 1)


def test_response_satisfies_constraints(sparse_path):
    path = sparse_path
    assert path.gamma.shape == (path.nk[-1], 50)
    assert np.all(np.dot(path.gamma, path.y) <= 1e-8)
    # 2(p - 1) + 1 rows at step one, then 2 rows per inactive variable
    assert path.nk[0] == 19
    assert_array_equal(np.diff(path.nk), 2 * np.arange(9, 0, -1))
    assert np.all(path.mp >= 0)
    assert np.all(path.mp <= path.lambdas)


def test_test_direction_recovers_knot(sparse_path):
    path = sparse_path
    for k in range(1, path.n_steps + 1):
        v = path.step_direction(k)
        assert np.dot(v, path.y) == pytest.approx(path.lambdas[k - 1])


def test_equicorrelation_at_knots(rng):
    X = rng.standard_normal((40, 8))
    X /= np.sqrt(np.sum(X ** 2, axis=0))
    y = X[:, 1] - 2 * X[:, 4] + 0.1 * rng.standard_normal(40)
    path = build_path(X, y, with_intercept=False, normalize=False)

    for k in range(1, path.n_steps):
        beta = path.coefs[:, k]
        corr = np.dot(X.T, y - np.dot(X, beta))
        active = path.actions[:k]
        assert_allclose(corr[active], path.lambdas[k] * path.signs[:k],
                        atol=1e-8)
        assert np.all(np.abs(corr) <= path.lambdas[k] + 1e-8)


def test_complete_path_refit_is_least_squares(sparse_data, sparse_path):
    X, y = sparse_data
    Xc = np.c_[np.ones(50), X]
    ols = np.linalg.lstsq(Xc, y, rcond=None)[0]
    assert_allclose(sparse_path.bls, ols[1:], atol=1e-8)


def test_coefficients_rescaled(rng):
    X = rng.standard_normal((30, 4)) * [1., 10., 0.1, 3.]
    y = X[:, 0] + rng.standard_normal(30)
    scaled = build_path(X, y, normalize=True)
    Xs, ys, _, _, sx = standardize(X, y)
    raw = build_path(Xs, ys, with_intercept=False, normalize=False)

    assert_allclose(scaled.lambdas, raw.lambdas)
    assert_allclose(scaled.coefs * sx[:, np.newaxis], raw.coefs, atol=1e-10)
    assert_allclose(scaled.bls * sx, raw.bls, atol=1e-10)


def test_max_steps_truncates(sparse_data):
    X, y = sparse_data
    path = build_path(X, y, max_steps=3)
    assert path.n_steps == 3
    assert not path.complete_path
    assert path.bls is None
    full = build_path(X, y)
    assert_allclose(path.lambdas, full.lambdas[:3])
    assert_allclose(path.gamma, full.gamma[:full.nk[2]])


def test_min_lambda_truncates(sparse_data, sparse_path):
    X, y = sparse_data
    floor = sparse_path.lambdas[4]
    path = build_path(X, y, min_lambda=floor + 1e-6)
    assert not path.complete_path
    assert path.lambdas[-1] < floor + 1e-6
    assert path.lambdas[-2] >= floor + 1e-6


def test_wide_design_stops_at_sample_size(wide_data):
    X, y = wide_data
    path = build_path(X, y)
    assert path.complete_path
    assert path.n_steps == 29
    assert np.all(np.dot(path.gamma, path.y) <= 1e-8)


def test_single_feature():
    X = np.array([[1.], [2.], [4.], [3.]])
    y = np.array([1., 3., 2., 5.])
    path = build_path(X, y)
    assert path.n_steps == 1
    assert path.complete_path
    assert path.nk.tolist() == [1]
    assert path.mp.tolist() == [0.]


@pytest.mark.filterwarnings('error::RuntimeWarning')
def test_duplicated_column_is_rank_deficient(rng):
    X = rng.standard_normal((30, 5))
    y = 5 * X[:, 0] + rng.standard_normal(30)
    X = np.c_[X, X[:, 0]]
    with pytest.raises(RankDeficiencyError, match="general position"):
        build_path(X, y)


def test_buffers_grow(sparse_data, sparse_path, monkeypatch):
    X, y = sparse_data
    monkeypatch.setattr(_least_angle, '_INITIAL_BUFFER', 2)
    path = build_path(X, y)
    assert path.n_steps == 10
    assert_allclose(path.lambdas, sparse_path.lambdas)
    assert_allclose(path.coefs, sparse_path.coefs)
    assert_array_equal(path.df, sparse_path.df)


def test_result_is_read_only(sparse_path):
    with pytest.raises(ValueError):
        sparse_path.lambdas[0] = 0.
    with pytest.raises(AttributeError):
        sparse_path.complete_path = False


def test_bad_input():
    with pytest.raises(InvalidInputError):
        build_path(np.ones((5, 2)), np.ones(4))
    with pytest.raises(InvalidInputError):
        build_path(np.array([[1., np.nan], [2., 3.]]), np.ones(2))
    with pytest.raises(InvalidInputError, match="max_steps"):
        build_path(np.eye(3), np.ones(3), max_steps=0)
    with pytest.raises(InvalidInputError, match="min_lambda"):
        build_path(np.eye(3), np.ones(3), min_lambda=-1)
    with pytest.raises(InvalidInputError, match="zero norm"):
        build_path(np.c_[np.ones(4), np.arange(4.)], np.arange(4.))


def test_verbose_output(sparse_data, capsys):
    X, y = sparse_data
    build_path(X, y, max_steps=2, verbose=2)
    out = capsys.readouterr().out
    assert out.startswith("Step\t\tAdded")
    assert "Reached the maximum number of steps (2)" in out


# Coefficient and prediction accessors

def test_coef_path_at_knots(sparse_path):
    path = sparse_path
    assert_allclose(coef_path(path, np.arange(1, 11)), path.coefs, atol=1e-12)
    assert_allclose(coef_path(path, 11), path.bls, atol=1e-12)
    assert_allclose(coef_path(path, 0.5), np.zeros(10))
    assert_allclose(coef_path(path, path.lambdas, mode='lambda'), path.coefs,
                    atol=1e-12)
    assert_allclose(coef_path(path, 0., mode='lambda'), path.bls)
    assert_allclose(coef_path(path, 2 * path.lambdas[0], mode='lambda'),
                    np.zeros(10))


def test_coef_path_continuous_at_knots(sparse_path):
    path = sparse_path
    eps = 1e-9
    for lam in path.lambdas[1:]:
        above = coef_path(path, lam + eps, mode='lambda')
        below = coef_path(path, lam - eps, mode='lambda')
        assert_allclose(above, below, atol=1e-6)


def test_coef_path_is_linear_between_knots(sparse_path):
    path = sparse_path
    mid = coef_path(path, 2.5)
    assert_allclose(mid, (path.coefs[:, 1] + path.coefs[:, 2]) / 2)
    lam = (path.lambdas[1] + path.lambdas[2]) / 2
    assert_allclose(coef_path(path, lam, mode='lambda'), mid)


def test_coef_path_bad_arguments(sparse_data):
    X, y = sparse_data
    path = build_path(X, y, max_steps=4)
    with pytest.raises(InvalidInputError, match="between 0 and 4"):
        coef_path(path, 5)
    with pytest.raises(InvalidInputError, match="s must be >="):
        coef_path(path, 0., mode='lambda')
    with pytest.raises(InvalidInputError, match="mode"):
        coef_path(path, 1, mode='norm')


def test_predict_path(sparse_data, sparse_path):
    X, y = sparse_data
    fitted = predict_path(sparse_path, 11)
    Xc = np.c_[np.ones(50), X]
    ols = np.linalg.lstsq(Xc, y, rcond=None)[0]
    assert_allclose(fitted, np.dot(Xc, ols), atol=1e-8)
    assert_allclose(predict_path(sparse_path, 11, newX=X[:5]), fitted[:5])
    # first knot predicts the mean
    assert_allclose(predict_path(sparse_path, 1), np.full(50, y.mean()))
    with pytest.raises(InvalidInputError):
        predict_path(sparse_path, 1, newX=X[:, :3])
