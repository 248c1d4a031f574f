"""
Observation preparation utilities

This module provides:
- Recode usage indicators (missing -> "No") into two-level categoricals
- Derive the retention indicator from presence of current-year profit
- Validate the prepared observation table
- Encode the table as an integer code matrix for the HMM

Key design choices (short summary):
- Every variable keeps both categories even if only one is observed, so the
  fitted emissions always have the same shape.
- Category order is the encoding: No/Left = 0, Yes/Stayed = 1.
"""

import numpy as np
import pandas as pd

import config


class DataIntegrityError(ValueError):
    """Prepared observation table breaks the two-category / no-missing invariant."""

    def __init__(self, column, message):
        self.column = column
        super().__init__(f"Column '{column}': {message}")


def recode_indicator(series, levels=None):
    """
    Recode a 0/1 usage indicator into a two-level categorical.

    Missing values are imputed to config.INDICATOR_FILL_VALUE ("No") first.
    Values other than the known codes become missing and are caught by
    `validate_observations`.
    """
    if levels is None:
        levels = config.USAGE_LEVELS

    filled = series.fillna(config.INDICATOR_FILL_VALUE)
    labels = filled.map(config.INDICATOR_CODES)
    return pd.Series(
        pd.Categorical(labels, categories=levels, ordered=False),
        index=series.index,
        name=series.name,
    )


def derive_retention(profit, levels=None):
    """Stayed iff the current-period profit is present, else Left."""
    if levels is None:
        levels = config.RETENTION_LEVELS

    labels = np.where(profit.notna(), levels[1], levels[0])
    return pd.Series(
        pd.Categorical(labels, categories=levels, ordered=False),
        index=profit.index,
        name=config.RETAINED_COLUMN,
    )


def validate_observations(observations, columns=None):
    """
    Check that every observation column is complete and has at most 2 categories.

    Raises
    ------
    DataIntegrityError
        Naming the first offending column.
    """
    if columns is None:
        columns = config.OBSERVATION_COLUMNS

    for col in columns:
        if col not in observations.columns:
            raise DataIntegrityError(col, "missing from prepared table")

        values = observations[col]
        n_missing = int(values.isna().sum())
        if n_missing > 0:
            raise DataIntegrityError(col, f"{n_missing} missing value(s) after recoding")

        if isinstance(values.dtype, pd.CategoricalDtype):
            n_categories = len(values.cat.categories)
            if n_categories > 2:
                raise DataIntegrityError(col, f"{n_categories} categories, expected 2")

        n_distinct = values.nunique(dropna=True)
        if n_distinct > 2:
            raise DataIntegrityError(col, f"{n_distinct} distinct values, expected at most 2")


def prepare_observations(raw_df, source_columns=None, profit_column=None):
    """
    Build the observation table (one row per customer) from the raw table.

    Parameters
    ----------
    raw_df : pd.DataFrame
        Raw customer table; not modified.
    source_columns : dict[str, str] | None
        Observation name -> raw column for the usage indicators.
        Default: config.SOURCE_COLUMNS.
    profit_column : str | None
        Current-period profit column. Default: config.PROFIT_COLUMN.

    Returns
    -------
    pd.DataFrame
        Columns config.OBSERVATION_COLUMNS, each a two-level categorical.
    """
    if source_columns is None:
        source_columns = config.SOURCE_COLUMNS
    if profit_column is None:
        profit_column = config.PROFIT_COLUMN

    required = list(source_columns.values()) + [profit_column]
    absent = [c for c in required if c not in raw_df.columns]
    if absent:
        raise ValueError(f"Raw data is missing required column(s): {absent}")

    observations = pd.DataFrame(index=raw_df.index)
    for name, raw_col in source_columns.items():
        observations[name] = recode_indicator(raw_df[raw_col].copy(), config.CATEGORY_LEVELS[name])

    observations[config.RETAINED_COLUMN] = derive_retention(raw_df[profit_column])
    observations = observations[config.OBSERVATION_COLUMNS]

    validate_observations(observations)
    return observations


def encode_observations(observations, columns=None):
    """
    Convert the observation table to an integer code matrix (n_rows, n_columns).

    Codes follow the categorical order (0 = No/Left, 1 = Yes/Stayed).
    """
    if columns is None:
        columns = config.OBSERVATION_COLUMNS

    validate_observations(observations, columns)
    codes = np.column_stack([observations[col].cat.codes.to_numpy() for col in columns])
    return codes.astype(int)


def category_levels(observations, columns=None):
    """Map each observation column to its category levels (in code order)."""
    if columns is None:
        columns = config.OBSERVATION_COLUMNS
    return {col: list(observations[col].cat.categories) for col in columns}
