import numpy as np
import pytest

from larinf import build_path


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def sparse_data(rng):
    # n=50, p=10, two true signals, unit noise
    X = rng.standard_normal((50, 10))
    X = (X - X.mean(axis=0)) / X.std(axis=0)
    beta = np.zeros(10)
    beta[[2, 7]] = [4., -3.]
    y = np.dot(X, beta) + rng.standard_normal(50)
    return X, y


@pytest.fixture
def sparse_path(sparse_data):
    X, y = sparse_data
    return build_path(X, y)


@pytest.fixture
def wide_data(rng):
    X = rng.standard_normal((30, 60))
    y = 2 * X[:, 0] + rng.standard_normal(30)
    return X, y
