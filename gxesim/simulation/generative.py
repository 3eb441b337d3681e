"""
Generative model for case/control data with gene-environment interaction

A run draws one Cohort (genotypes, allele frequencies and exposure) and then
any number of Realizations on top of it. Each realization samples its active
SNPs first and then draws the interacting SNPs from that active set, so every
interacting SNP also carries a marginal effect.
"""

import math
from typing import Tuple

import numpy as np

from ..utils.data_types import Cohort, Realization

MAF_RANGE: Tuple[float, float] = (0.07, 0.45)
EXPOSURE_PROBABILITY = 0.5


def interaction_counts(n_snps: int, prev_snps: float, prev_interactions: float) -> Tuple[int, int]:
    """Return (m_b, n_i) = (floor(prev_s * m), floor(prev_i * m_b))"""
    n_active = int(math.floor(prev_snps * n_snps))
    n_interacting = int(math.floor(prev_interactions * n_active))
    return n_active, n_interacting


def generate_cohort(n_individuals: int,
                    n_snps: int,
                    rng: np.random.Generator,
                    maf_range: Tuple[float, float] = MAF_RANGE,
                    exposure_probability: float = EXPOSURE_PROBABILITY) -> Cohort:
    """Draw a synthetic cohort

    Args:
        n_individuals: Number of individuals (n)
        n_snps: Number of SNPs (m)
        rng: Random generator for the run
        maf_range: Bounds of the uniform allele-frequency draw
        exposure_probability: Probability that an individual is exposed

    Returns:
        Cohort with Binomial(2, maf) dosages and Bernoulli exposure
    """
    if n_individuals <= 0 or n_snps <= 0:
        raise ValueError("Cohort dimensions must be positive")

    mafs = rng.uniform(maf_range[0], maf_range[1], size=n_snps)
    # One column per SNP, each column drawn from its own frequency
    genotypes = rng.binomial(2, mafs, size=(n_individuals, n_snps))
    exposure = rng.binomial(1, exposure_probability, size=n_individuals)

    return Cohort(genotypes=genotypes, minor_allele_freqs=mafs, exposure=exposure)


def generate_realization(cohort: Cohort,
                         prev_snps: float,
                         prev_interactions: float,
                         rng: np.random.Generator,
                         effect_scale: float = 1.0) -> Realization:
    """Draw coefficients and outcomes for one realization

    Sampling is two-stage: `m_b` active SNPs are drawn without replacement
    from all SNPs, then `n_i` interacting SNPs are drawn without replacement
    from the active SNPs only.

    Args:
        cohort: Shared cohort (not modified)
        prev_snps: Fraction of SNPs with a marginal effect
        prev_interactions: Fraction of active SNPs interacting with exposure
        rng: Random generator for the run
        effect_scale: Standard deviation of the Normal coefficient draws

    Returns:
        Realization holding coefficients, index sets and the uniforms that
        drive both the interaction and the no-interaction outcomes
    """
    m = cohort.n_snps
    n_active, n_interacting = interaction_counts(m, prev_snps, prev_interactions)

    active_snps = rng.choice(m, size=n_active, replace=False)
    snp_coefs = np.zeros(m)
    snp_coefs[active_snps] = rng.normal(0.0, effect_scale, size=n_active)

    intercept = float(rng.normal(0.0, effect_scale))
    env_coef = float(rng.normal(0.0, effect_scale))

    # Size-0 draws are valid and give an empty interacting set
    interacting_snps = rng.choice(active_snps, size=n_interacting, replace=False)
    interaction_coefs = np.zeros(m)
    interaction_coefs[interacting_snps] = rng.normal(0.0, effect_scale, size=n_interacting)

    uniforms = rng.uniform(0.0, 1.0, size=cohort.n_individuals)

    return Realization(
        cohort=cohort,
        intercept=intercept,
        snp_coefs=snp_coefs,
        env_coef=env_coef,
        interaction_coefs=interaction_coefs,
        active_snps=active_snps,
        interacting_snps=interacting_snps,
        uniforms=uniforms,
    )

