"""
Data I/O utilities

This module provides:
- Save/load intermediate artifacts as pickle files
- Save fitted models
- Load the raw customer CSV
- Basic data quality checks (missing values, duplicates, dtypes)
"""

import pickle
from pathlib import Path

import pandas as pd

import config


def save_intermediate(name, data, directory=None):
    """
    Save an intermediate artifact to the intermediate directory.

    Parameters
    ----------
    name : str
        File stem (without extension).
    data : Any
        Python object to pickle.
    directory : Path | None
        Target directory; defaults to config.INTERMEDIATE_DIR.

    Returns
    -------
    Path
        Path of the written file.
    """
    if directory is None:
        directory = config.INTERMEDIATE_DIR

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    filepath = directory / f"{name}.pkl"
    with open(filepath, "wb") as f:
        pickle.dump(data, f)
    print(f"Saved: {filepath}")
    return filepath


def load_intermediate(name, directory=None):
    """
    Load an intermediate artifact from the intermediate directory.

    Parameters
    ----------
    name : str
        File stem (without extension).
    directory : Path | None
        Source directory; defaults to config.INTERMEDIATE_DIR.

    Returns
    -------
    Any
        Unpickled Python object.
    """
    if directory is None:
        directory = config.INTERMEDIATE_DIR

    directory = Path(directory)
    filepath = directory / f"{name}.pkl"
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    with open(filepath, "rb") as f:
        data = pickle.load(f)
    print(f"Loaded: {filepath}")
    return data


def save_model(name, model, directory=None):
    """Save a fitted model to the models directory."""
    if directory is None:
        directory = config.MODELS_DIR

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    filepath = directory / f"{name}.pkl"
    with open(filepath, "wb") as f:
        pickle.dump(model, f)
    print(f"Model saved: {filepath}")
    return filepath


def load_customer_data(path=None):
    """
    Load the raw customer CSV (one row per customer).

    Parameters
    ----------
    path : str | Path | None
        CSV path; defaults to config.CUSTOMER_DATA_PATH.

    Returns
    -------
    pd.DataFrame
        Raw customer table.
    """
    if path is None:
        path = config.CUSTOMER_DATA_PATH

    print("Loading customer data...")
    customer_df = pd.read_csv(path)
    print(f"✓ Customer data: {len(customer_df)} rows, {len(customer_df.columns)} columns")
    return customer_df


def missing_value_summary(df, columns=None):
    """Count missing values per column (all columns if `columns` is None)."""
    if columns is not None:
        df = df[list(columns)]
    return df.isnull().sum()


def check_data_quality(df, name="data", columns=None):
    """
    Basic data quality checks: shape, missing values, duplicates, and dtypes.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to inspect.
    name : str
        Display name used in logs.
    columns : list[str] | None
        Restrict the missing-value summary to these columns.
    """
    print(f"\n=== Data quality check: {name} ===")
    print(f"Shape: {df.shape}")

    missing = missing_value_summary(df, columns)
    if missing.sum() > 0:
        print("Missing values (non-zero):")
        print(missing[missing > 0].sort_values(ascending=False))
    else:
        print("Missing values: none")

    print(f"Duplicate rows: {df.duplicated().sum()}")

    # Show dtype counts (e.g., float64/int64/object)
    print("Dtype counts:")
    print(df.dtypes.value_counts())
    return missing
