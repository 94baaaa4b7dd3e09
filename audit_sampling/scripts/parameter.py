# File containing shared parameters for the sampling engine
default_seed = 42

# z-scores are rounded so the common levels land on the textbook values
# (0.90 -> 1.645, 0.95 -> 1.96, 0.99 -> 2.576)
z_score_decimals = 3

# p used when no expected error rate is given (maximum variance)
conservative_proportion = 0.5

filter_operators = (
    "equals",
    "not_equals",
    "contains",
    "greater_than",
    "less_than",
)

coverage_justification = (
    "Override made to allow for sampling coverage across all observed "
    "strata in the population"
)

default_source_description = (
    "Population extract supplied by the engagement team for statistical "
    "sample selection."
)

csv_extensions = (".csv", ".txt")
excel_extensions = (".xlsx", ".xlsm", ".xls")
