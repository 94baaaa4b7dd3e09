"""Audit Sampling Engine.

Turns a tabular customer population into an audit-defensible sample:
sample-size calculation, stratified allocation, reproducible selection,
minimum coverage and an irreversible lock.
"""

__version__ = "0.1.0"
