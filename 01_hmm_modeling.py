"""
01 - HMM Modeling and State Labeling

This script:
1. Loads the prepared observation table
2. Fits a 4-state HMM with five independent categorical emissions
3. Derives a readable label for each state from its emission profile
4. Prints per-state emission tables and the labelled transition matrix
5. Saves the model and a text report

Notes:
- HMM states have no preset semantics; labels come from emission probabilities
- A failed fit ends with a diagnostic message rather than an exception
"""

import warnings

import pandas as pd

import config
from retention_hmm.data_utils import load_intermediate, save_model
from retention_hmm.hmm_utils import fit_hmm
from retention_hmm.labeling_utils import label_states
from retention_hmm.report_utils import (
    build_hmm_report,
    fit_failure_lines,
    format_transition_matrix,
    save_report,
)

warnings.filterwarnings('ignore')
pd.set_option("display.max_columns", config.DISPLAY_MAX_COLUMNS)
pd.set_option("display.width", config.DISPLAY_WIDTH)

print("\n" + "="*80)
print("01 - HMM Modeling and State Labeling")
print("="*80)

# 1. Load data
print("\n" + "-"*80)
print("1. Load Prepared Observations")
print("-"*80)

observations = load_intermediate('observations')
print(f"\nObservation table: {observations.shape}")

# 2. Fit
print("\n" + "-"*80)
print("2. Fit HMM")
print("-"*80)

outcome = fit_hmm(
    observations,
    n_states=config.HMM_CONFIG['n_states'],
    n_iter=config.HMM_CONFIG['n_iter'],
    tol=config.HMM_CONFIG['tol'],
    algorithm=config.HMM_CONFIG['algorithm'],
    random_state=config.HMM_CONFIG['random_state'],
)

if not outcome.succeeded:
    print("\n" + "\n".join(fit_failure_lines(outcome)))
    print("\n" + "="*80)
    print("HMM modeling ended without a fitted model.")
    print("="*80)
else:
    params = outcome.params

    # 3. Label states
    print("\n" + "-"*80)
    print("3. Label HMM States")
    print("-"*80)

    labels = label_states(params)
    for state, label in enumerate(labels):
        print(f"  State {state}: {label}")

    # 4. Report
    print("\n" + "-"*80)
    print("4. HMM Results")
    print("-"*80)

    report_lines = build_hmm_report(outcome, labels, n_observations=len(observations))
    report_text = "\n".join(report_lines)
    print(report_text)

    print("\n" + "-"*80)
    print("5. Transition Matrix (Labelled States)")
    print("-"*80)
    print(format_transition_matrix(params, labels).to_string())

    # 6. Save
    print("\n" + "-"*80)
    print("6. Save Results")
    print("-"*80)

    save_model('retention_hmm', outcome.model)
    save_report(report_text)

    print("\n" + "="*80)
    print("HMM modeling completed!")
    print("="*80)
