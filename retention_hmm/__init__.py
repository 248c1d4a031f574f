"""
Customer retention HMM utilities
"""

from .data_utils import save_intermediate, load_intermediate, save_model, load_customer_data, check_data_quality
from .prep_utils import DataIntegrityError, prepare_observations, validate_observations, encode_observations
from .hmm_utils import ModelFitError, MultiCategoricalHMM, FittedHMM, FitOutcome, fit_hmm, train_hmm
from .labeling_utils import describe_state, resolve_collisions, label_states
from .report_utils import categorical_summary, factor_levels, build_hmm_report, fit_failure_lines, save_report

__all__ = [
    'save_intermediate',
    'load_intermediate',
    'save_model',
    'load_customer_data',
    'check_data_quality',
    'DataIntegrityError',
    'prepare_observations',
    'validate_observations',
    'encode_observations',
    'ModelFitError',
    'MultiCategoricalHMM',
    'FittedHMM',
    'FitOutcome',
    'fit_hmm',
    'train_hmm',
    'describe_state',
    'resolve_collisions',
    'label_states',
    'categorical_summary',
    'factor_levels',
    'build_hmm_report',
    'fit_failure_lines',
    'save_report',
]
