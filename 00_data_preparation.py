"""
00 - Data Preparation

This script:
1. Loads the raw customer CSV
2. Prints a missing-value summary for the source columns
3. Recodes usage indicators (missing -> "No") and derives retention
   from presence of current-year profit
4. Prints a categorical summary and the factor levels
5. Saves the prepared observation table for 01_hmm_modeling.py

Notes:
- A DataIntegrityError here aborts the run: the data does not match the
  two-category model.
- The input path comes from config.CUSTOMER_DATA_PATH (env: RETENTION_DATA_PATH).
"""

import warnings

import pandas as pd

import config
from retention_hmm.data_utils import check_data_quality, load_customer_data, save_intermediate
from retention_hmm.prep_utils import prepare_observations
from retention_hmm.report_utils import categorical_summary, factor_levels

warnings.filterwarnings('ignore')
pd.set_option("display.max_columns", config.DISPLAY_MAX_COLUMNS)
pd.set_option("display.width", config.DISPLAY_WIDTH)

print("\n" + "="*80)
print("00 - Data Preparation")
print("="*80)

# 1. Load data
print("\n" + "-"*80)
print("1. Load Customer Data")
print("-"*80)

raw_df = load_customer_data()

# 2. Missing values
print("\n" + "-"*80)
print("2. Missing-value Summary")
print("-"*80)

source_cols = list(config.SOURCE_COLUMNS.values()) + [config.PROFIT_COLUMN]
check_data_quality(raw_df, name="customer data", columns=[c for c in source_cols if c in raw_df.columns])

# 3. Recode
print("\n" + "-"*80)
print("3. Recode Observation Variables")
print("-"*80)

observations = prepare_observations(raw_df)
print(f"✓ Observation table: {observations.shape[0]} rows, {observations.shape[1]} variables")
print(f"  Missing usage indicators imputed to '{config.INDICATOR_CODES[config.INDICATOR_FILL_VALUE]}'")
print(f"  '{config.RETAINED_COLUMN}' = '{config.RETENTION_LEVELS[1]}' iff {config.PROFIT_COLUMN} is present")

# 4. Summaries
print("\n" + "-"*80)
print("4. Categorical Summary")
print("-"*80)

print(categorical_summary(observations).to_string())

print("\nFactor levels:")
for line in factor_levels(observations):
    print(f"  {line}")

# 5. Save
print("\n" + "-"*80)
print("5. Save Results")
print("-"*80)

save_intermediate('observations', observations)

print("\n" + "="*80)
print("Data preparation completed!")
print("="*80)
print("\nNext step: Run `01_hmm_modeling.py` to fit the HMM")
