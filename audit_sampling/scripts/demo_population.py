"""Synthetic client-onboarding population for demos and tests."""

from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

JURISDICTIONS = ("US", "UK", "ENT", "IND", "SG")
JURISDICTION_WEIGHTS = (0.55, 0.2, 0.12, 0.08, 0.05)
PARTY_TYPES = ("Corporate", "Fund", "Individual", "Trust")
KYC_STATUSES = ("Complete", "Pending", "Expired")
CLIENT_TYPES = ("New", "Existing")


def generate_demo_population(
    size: int = 1000,
    seed: Optional[int] = None,
    jurisdiction_weights: Optional[Dict[str, float]] = None,
) -> pd.DataFrame:
    """Generate a synthetic onboarding population.

    Args:
        size: Number of clients
        seed: Random seed for reproducibility (None for random)
        jurisdiction_weights: Optional jurisdiction -> weight mapping replacing
            the default mix

    Returns:
        DataFrame with columns GCI, Jurisdiction, Party Type, KYC Status,
        Client Type, Risk Score and Onboarding Date, ordered by onboarding date
    """
    if size < 0:
        raise ValueError("Population size must not be negative")

    generator = np.random.default_rng(seed)

    if jurisdiction_weights:
        jurisdictions: Sequence[str] = tuple(jurisdiction_weights)
        weights = np.array([jurisdiction_weights[j] for j in jurisdictions], dtype=float)
    else:
        jurisdictions = JURISDICTIONS
        weights = np.array(JURISDICTION_WEIGHTS, dtype=float)
    weights = weights / weights.sum()

    onboarding = pd.Timestamp("2024-01-01") + pd.to_timedelta(
        np.sort(generator.integers(0, 365, size=size)), unit="D"
    )

    return pd.DataFrame(
        {
            "GCI": [f"GCI{100000 + i}" for i in range(size)],
            "Jurisdiction": generator.choice(jurisdictions, size=size, p=weights),
            "Party Type": generator.choice(PARTY_TYPES, size=size),
            "KYC Status": generator.choice(
                KYC_STATUSES, size=size, p=(0.8, 0.15, 0.05)
            ),
            "Client Type": generator.choice(CLIENT_TYPES, size=size, p=(0.3, 0.7)),
            "Risk Score": np.round(generator.uniform(0, 100, size=size), 1),
            "Onboarding Date": onboarding.strftime("%Y-%m-%d"),
        }
    )
