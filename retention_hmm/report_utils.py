"""
Reporting utilities

This module provides:
1) Categorical summaries of the prepared observation table
2) Per-state emission tables and the labelled transition matrix
3) Assembling and saving a readable text report

Rounding here is display-only: every helper works on copies, never on the
fitted parameters themselves.
"""

from pathlib import Path

import numpy as np
import pandas as pd

import config

from .hmm_utils import state_distribution


def categorical_summary(observations, columns=None):
    """
    Counts per category for every observation column.

    Returns
    -------
    pd.DataFrame
        Index (variable, category), column "count".
    """
    if columns is None:
        columns = config.OBSERVATION_COLUMNS

    rows = []
    for col in columns:
        counts = observations[col].value_counts(sort=False, dropna=False)
        for category, count in counts.items():
            rows.append({"variable": col, "category": category, "count": int(count)})
    return pd.DataFrame(rows).set_index(["variable", "category"])


def factor_levels(observations, columns=None):
    """One line per column: `name: [level0, level1]`."""
    if columns is None:
        columns = config.OBSERVATION_COLUMNS
    return [f"{col}: {list(observations[col].cat.categories)}" for col in columns]


def format_emission_table(params, state, decimals=None):
    """Emission table of one state, rounded for display."""
    if decimals is None:
        decimals = config.DISPLAY_DECIMALS
    return params.emission_table(state).round(decimals)


def format_transition_matrix(params, labels=None, decimals=None):
    """Transition matrix with label headers, rounded for display."""
    if decimals is None:
        decimals = config.DISPLAY_DECIMALS
    return params.transition_table(labels).round(decimals)


def format_initial_probabilities(params, labels=None, decimals=None):
    if decimals is None:
        decimals = config.DISPLAY_DECIMALS
    if labels is None:
        labels = [f"State {i}" for i in range(params.n_states)]
    return pd.Series(np.round(params.startprob, decimals), index=list(labels), name="initial_probability")


def build_hmm_report(outcome, labels, n_observations, hmm_config=None):
    """
    Assemble the report lines for a successful fit.

    Sections: configuration, per-state emissions (each preceded by its label),
    initial probabilities, decoded state occupancy, transition matrix.
    """
    if hmm_config is None:
        hmm_config = config.HMM_CONFIG

    params = outcome.params
    report_lines = []
    report_lines.append("=" * 60)
    report_lines.append("HMM Modeling Report")
    report_lines.append("=" * 60)
    report_lines.append("\nHMM Configuration:")
    report_lines.append(f"  Number of states: {params.n_states}")
    report_lines.append(f"  Observed variables: {', '.join(params.variables)}")
    report_lines.append(f"  Max iterations: {hmm_config['n_iter']} (used: {params.n_iter})")
    report_lines.append(f"  Tolerance: {hmm_config['tol']}")
    report_lines.append(f"  Random state: {hmm_config['random_state']}")
    report_lines.append(f"  Observations: {n_observations}")
    report_lines.append(f"  Log-likelihood: {params.log_likelihood:.3f}")

    report_lines.append("\nEmission probabilities by state:")
    for state, label in enumerate(labels):
        report_lines.append("")
        report_lines.append(f"State {state}: {label}")
        report_lines.append(format_emission_table(params, state).to_string())

    report_lines.append("\nInitial state probabilities:")
    report_lines.append(format_initial_probabilities(params, labels).to_string())

    if outcome.states is not None:
        counts = state_distribution(outcome.states, params.n_states)
        counts.index = list(labels)
        report_lines.append("\nDecoded state distribution:")
        report_lines.append(counts.to_string())

    report_lines.append("\nTransition matrix:")
    report_lines.append(format_transition_matrix(params, labels).to_string())
    return report_lines


def fit_failure_lines(outcome):
    """Diagnostic message for a failed fit."""
    return [
        "HMM fitting failed.",
        f"  Cause: {outcome.error}",
        "  Suggestions:",
        "  - Inspect the prepared observation table (categorical summary above)",
        "  - Check for missing values or columns with a single observed category",
        "  - Try a different random_state or a larger n_iter in config.HMM_CONFIG",
    ]


def save_report(report_text, filename="hmm_analysis_report.txt", directory=None):
    """Write report text under config.REPORTS_DIR (or `directory`)."""
    if directory is None:
        directory = config.REPORTS_DIR

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    report_path = directory / filename
    with open(report_path, "w", encoding="utf-8") as f:
        f.write(report_text)

    print(f"\n✓ Report saved to {report_path}")
    return report_path
