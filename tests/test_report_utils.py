# tests/test_report_utils.py
import numpy as np

from retention_hmm.hmm_utils import FitOutcome, ModelFitError
from retention_hmm.labeling_utils import label_states
from retention_hmm.prep_utils import prepare_observations
from retention_hmm.report_utils import (
    build_hmm_report,
    categorical_summary,
    factor_levels,
    fit_failure_lines,
    format_emission_table,
    format_transition_matrix,
    save_report,
)

LEVEL_ONE = [
    [0.91234, 0.8, 0.9, 0.85, 0.95],
    [0.05, 0.05, 0.10, 0.05, 0.90],
    [0.10, 0.05, 0.85, 0.60, 0.90],
    [0.20, 0.10, 0.10, 0.05, 0.10],
]
TRANSMAT = np.array([
    [0.7, 0.1, 0.1, 0.1],
    [0.12345, 0.67655, 0.1, 0.1],
    [0.1, 0.1, 0.7, 0.1],
    [0.1, 0.1, 0.1, 0.7],
])


def test_categorical_summary_lists_both_levels(small_raw_df):
    raw = small_raw_df.copy()
    raw["0Profit"] = 1.0
    obs = prepare_observations(raw)

    summary = categorical_summary(obs)
    assert summary.loc[("retained", "Left"), "count"] == 0
    assert summary.loc[("retained", "Stayed"), "count"] == 5
    assert summary["count"].sum() == 5 * 5


def test_factor_levels(small_raw_df):
    lines = factor_levels(prepare_observations(small_raw_df))
    assert lines[0] == "online_usage_prior_year: ['No', 'Yes']"
    assert lines[-1] == "retained: ['Left', 'Stayed']"


def test_display_rounding_leaves_parameters_untouched(make_fitted):
    params = make_fitted(LEVEL_ONE, transmat=TRANSMAT)
    transmat_before = params.transmat.copy()
    emis_before = params.emissionprob.copy()

    labels = label_states(params)
    shown = format_transition_matrix(params, labels)
    table = format_emission_table(params, 0)

    assert shown.iloc[1, 0] == 0.123
    assert table.loc[("online_usage_prior_year", "Yes"), "probability"] == 0.912
    assert list(shown.index) == labels and list(shown.columns) == labels
    np.testing.assert_array_equal(params.transmat, transmat_before)
    np.testing.assert_array_equal(params.emissionprob, emis_before)
    assert params.transmat[1, 0] == 0.12345


def test_report_puts_label_before_each_emission_table(make_fitted):
    params = make_fitted(LEVEL_ONE, transmat=TRANSMAT)
    labels = label_states(params)
    outcome = FitOutcome(params=params, states=np.array([0, 1, 1, 3]))

    lines = build_hmm_report(outcome, labels, n_observations=4)
    text = "\n".join(lines)

    for state, label in enumerate(labels):
        assert f"State {state}: {label}" in lines
    assert "Transition matrix:" in text
    assert "Decoded state distribution:" in text


def test_failure_lines_carry_cause():
    outcome = FitOutcome(error=ModelFitError("EM did not converge"))
    lines = fit_failure_lines(outcome)
    assert any("EM did not converge" in line for line in lines)


def test_save_report(tmp_path):
    path = save_report("hello", directory=tmp_path)
    assert path.read_text(encoding="utf-8") == "hello"
