"""
Pytest configuration and fixtures for the retention HMM tests
"""

import numpy as np
import pandas as pd
import pytest

from retention_hmm.hmm_utils import FittedHMM, MultiCategoricalHMM

# P(level 1) per variable, in config.OBSERVATION_COLUMNS order:
# online prior, billpay prior, online current, billpay current, retained
TRUE_LEVEL_ONE = np.array([
    [0.90, 0.80, 0.90, 0.85, 0.95],  # Retained Online +Billpay
    [0.05, 0.05, 0.10, 0.05, 0.90],  # Retained Offline
    [0.10, 0.05, 0.85, 0.60, 0.90],  # Retained Newly Online +Billpay
    [0.20, 0.10, 0.10, 0.05, 0.10],  # Non-Retained Offline
])


def make_emissions(level_one):
    level_one = np.asarray(level_one, dtype=float)
    return np.stack([1.0 - level_one, level_one], axis=-1)


@pytest.fixture
def generating_model():
    """Known 4-state model used to simulate customers."""
    model = MultiCategoricalHMM(n_components=4, n_categories=2, random_state=0)
    model.startprob_ = np.full(4, 0.25)
    model.transmat_ = np.full((4, 4), 0.1) + np.eye(4) * 0.6
    model.emissionprob_ = make_emissions(TRUE_LEVEL_ONE)
    return model


def codes_to_raw(codes, seed=0):
    """Turn a (n, 5) code matrix into a raw customer table with some missing values."""
    rng = np.random.RandomState(seed)
    n = codes.shape[0]
    raw = pd.DataFrame({
        "ID": np.arange(1, n + 1),
        "9Profit": rng.normal(100, 50, n).round(0),
        "9Online": codes[:, 0].astype(float),
        "9Billpay": codes[:, 1].astype(float),
        "0Online": codes[:, 2].astype(float),
        "0Billpay": codes[:, 3].astype(float),
        "0Profit": np.where(codes[:, 4] == 1, rng.normal(120, 60, n).round(0), np.nan),
    })
    # Unknown usage means "did not use": blank out some zeros
    for col in ["9Online", "9Billpay", "0Online", "0Billpay"]:
        blank = (raw[col] == 0) & (rng.rand(n) < 0.3)
        raw.loc[blank, col] = np.nan
    return raw


@pytest.fixture
def synthetic_raw_df(generating_model):
    """2000 simulated customers drawn from the generating model."""
    codes, _ = generating_model.sample(2000, random_state=1)
    return codes_to_raw(codes)


@pytest.fixture
def small_raw_df():
    """Hand-written raw table covering missing indicators and missing profit."""
    return pd.DataFrame({
        "ID": [1, 2, 3, 4, 5],
        "9Profit": [10.0, -5.0, 30.0, np.nan, 2.0],
        "9Online": [1.0, np.nan, 0.0, 1.0, np.nan],
        "9Billpay": [0.0, np.nan, 1.0, 0.0, 0.0],
        "0Online": [1.0, 1.0, np.nan, 0.0, np.nan],
        "0Billpay": [np.nan, 0.0, 1.0, 1.0, 0.0],
        "0Profit": [25.0, np.nan, 0.0, np.nan, -3.0],
    })


@pytest.fixture
def variables():
    import config
    return tuple(config.OBSERVATION_COLUMNS)


@pytest.fixture
def make_fitted(variables):
    """Build a FittedHMM directly from P(level 1) rows."""
    import config

    def _make(level_one, transmat=None, startprob=None):
        level_one = np.asarray(level_one, dtype=float)
        n_states = level_one.shape[0]
        if transmat is None:
            transmat = np.full((n_states, n_states), 1.0 / n_states)
        if startprob is None:
            startprob = np.full(n_states, 1.0 / n_states)
        return FittedHMM(
            startprob=startprob,
            transmat=transmat,
            emissionprob=make_emissions(level_one),
            variables=variables,
            categories={v: tuple(config.CATEGORY_LEVELS[v]) for v in variables},
            log_likelihood=-1.0,
            n_iter=1,
        )

    return _make
