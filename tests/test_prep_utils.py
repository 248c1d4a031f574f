# tests/test_prep_utils.py
import numpy as np
import pandas as pd
import pytest

import config
from retention_hmm.prep_utils import (
    DataIntegrityError,
    encode_observations,
    prepare_observations,
    validate_observations,
)


def test_all_fields_are_two_level_and_complete(small_raw_df):
    obs = prepare_observations(small_raw_df)

    assert list(obs.columns) == config.OBSERVATION_COLUMNS
    assert len(obs) == len(small_raw_df)
    for col in config.OBSERVATION_COLUMNS:
        assert isinstance(obs[col].dtype, pd.CategoricalDtype)
        assert list(obs[col].cat.categories) == config.CATEGORY_LEVELS[col]
        assert obs[col].isna().sum() == 0


def test_missing_indicators_become_no(small_raw_df):
    obs = prepare_observations(small_raw_df)

    assert obs["online_usage_prior_year"].tolist() == ["Yes", "No", "No", "Yes", "No"]
    assert obs["billpay_usage_prior_year"].tolist() == ["No", "No", "Yes", "No", "No"]
    assert obs["online_usage_current_year"].tolist() == ["Yes", "Yes", "No", "No", "No"]
    assert obs["billpay_usage_current_year"].tolist() == ["No", "No", "Yes", "Yes", "No"]


def test_retained_iff_current_profit_present(small_raw_df):
    obs = prepare_observations(small_raw_df)

    expected = np.where(small_raw_df["0Profit"].notna(), "Stayed", "Left")
    assert obs["retained"].tolist() == expected.tolist()
    # a zero or negative profit still counts as present
    assert obs["retained"].iloc[2] == "Stayed"
    assert obs["retained"].iloc[4] == "Stayed"


def test_raw_input_is_not_mutated(small_raw_df):
    before = small_raw_df.copy()
    prepare_observations(small_raw_df)
    pd.testing.assert_frame_equal(small_raw_df, before)


def test_single_observed_category_keeps_two_levels(small_raw_df):
    raw = small_raw_df.copy()
    raw["0Billpay"] = np.nan
    raw["0Profit"] = 1.0

    obs = prepare_observations(raw)

    assert obs["billpay_usage_current_year"].nunique() == 1
    assert list(obs["billpay_usage_current_year"].cat.categories) == ["No", "Yes"]
    assert list(obs["retained"].cat.categories) == ["Left", "Stayed"]
    assert set(encode_observations(obs)[:, 3]) == {0}


def test_unknown_indicator_code_raises_data_integrity_error(small_raw_df):
    raw = small_raw_df.copy()
    raw.loc[0, "9Online"] = 2

    with pytest.raises(DataIntegrityError) as excinfo:
        prepare_observations(raw)
    assert excinfo.value.column == "online_usage_prior_year"


def test_missing_source_column_is_fatal(small_raw_df):
    with pytest.raises(ValueError, match="0Billpay"):
        prepare_observations(small_raw_df.drop(columns=["0Billpay"]))


def test_validate_rejects_extra_categories(small_raw_df):
    obs = prepare_observations(small_raw_df)
    obs["retained"] = obs["retained"].cat.add_categories(["Unknown"])

    with pytest.raises(DataIntegrityError, match="retained"):
        validate_observations(obs)


def test_encoding_follows_category_order(small_raw_df):
    obs = prepare_observations(small_raw_df)
    codes = encode_observations(obs)

    assert codes.shape == (5, 5)
    assert codes.dtype.kind == "i"
    # row 0: online prior Yes, billpay prior No, online current Yes, billpay current No, Stayed
    assert codes[0].tolist() == [1, 0, 1, 0, 1]
    # row 1: only online current Yes, Left
    assert codes[1].tolist() == [0, 0, 1, 0, 0]
