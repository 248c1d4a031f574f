"""
Configuration file - paths, column mapping and hyperparameters

This module centralizes:
- Project/data/output paths (overridable through environment variables)
- Raw column names of the customer dataset
- Category levels for the recoded observation variables
- HMM settings
- Display settings for the printed report
"""

import os
from pathlib import Path

# ==================== Path settings ====================

# Project root directory
PROJECT_ROOT = Path(__file__).parent

# Data paths
DATA_DIR = PROJECT_ROOT / "data"
CUSTOMER_DATA_PATH = Path(os.environ.get("RETENTION_DATA_PATH", DATA_DIR / "customer_data.csv"))

# Output paths (created if missing)
OUTPUT_DIR = Path(os.environ.get("RETENTION_OUTPUT_DIR", PROJECT_ROOT / "outputs"))
OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

INTERMEDIATE_DIR = OUTPUT_DIR / "intermediate"
INTERMEDIATE_DIR.mkdir(exist_ok=True)

MODELS_DIR = OUTPUT_DIR / "models"
MODELS_DIR.mkdir(exist_ok=True)

REPORTS_DIR = OUTPUT_DIR / "reports"
REPORTS_DIR.mkdir(exist_ok=True)

# ==================== Column settings ====================

# Raw source columns ("9" = prior year, "0" = current year)
SOURCE_COLUMNS = {
    "online_usage_prior_year": "9Online",
    "billpay_usage_prior_year": "9Billpay",
    "online_usage_current_year": "0Online",
    "billpay_usage_current_year": "0Billpay",
}

# Current-period profit; presence means the customer is still with the bank
PROFIT_COLUMN = "0Profit"

RETAINED_COLUMN = "retained"

# Observation column order used for encoding and for the fitted emissions
OBSERVATION_COLUMNS = [
    "online_usage_prior_year",
    "billpay_usage_prior_year",
    "online_usage_current_year",
    "billpay_usage_current_year",
    RETAINED_COLUMN,
]

# Category levels: index 0 / index 1 (the order is the encoding)
USAGE_LEVELS = ["No", "Yes"]
RETENTION_LEVELS = ["Left", "Stayed"]

CATEGORY_LEVELS = {
    "online_usage_prior_year": USAGE_LEVELS,
    "billpay_usage_prior_year": USAGE_LEVELS,
    "online_usage_current_year": USAGE_LEVELS,
    "billpay_usage_current_year": USAGE_LEVELS,
    RETAINED_COLUMN: RETENTION_LEVELS,
}

# Raw indicator codes; missing values are imputed to 0 before recoding
INDICATOR_CODES = {0: "No", 1: "Yes"}
INDICATOR_FILL_VALUE = 0

# ==================== HMM settings ====================

HMM_CONFIG = {
    "n_states": 4,                # Hidden states
    "n_iter": 500,                # Max Baum-Welch iterations
    "tol": 1e-4,                  # Log-likelihood gain threshold for convergence
    "algorithm": "map",           # 'map' (posterior decoding) or 'viterbi'
    "kmeans_init": True,          # Initialize emissions from KMeans centres
    "emission_clip": 1e-3,        # Keep initial emissions away from 0 and 1
    "random_state": 42,
}

# Tolerance when checking that fitted probability vectors sum to 1
PROBABILITY_TOLERANCE = 1e-6

# ==================== Labeling settings ====================

LABEL_THRESHOLD = 0.5  # P(level 1) must be strictly above this

# ==================== Display settings ====================

# Display options (for pandas output)
DISPLAY_DECIMALS = 3
DISPLAY_MAX_COLUMNS = None  # None means show all columns
DISPLAY_WIDTH = 160
