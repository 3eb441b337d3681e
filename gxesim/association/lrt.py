"""
Likelihood-ratio test for a single SNP-by-exposure interaction.

Two nested binomial GLMs (logit link, IRLS) are fitted on one SNP column:
    reduced: y ~ 1 + snp + env
    full:    y ~ 1 + snp + env + snp:env
and compared with a 1 d.f. chi-square test on twice the log-likelihood gain.
"""

import warnings
from typing import Optional, Tuple

import numpy as np
import statsmodels.api as sm
from scipy import stats
from statsmodels.tools.sm_exceptions import (
    ConvergenceWarning,
    PerfectSeparationError,
    PerfectSeparationWarning,
)

from ..utils.errors import FitFailureError

# Fitted means this close to every outcome mean the classes are completely separated
_SEPARATION_ATOL = 1e-6


def _interaction_designs(snp: np.ndarray, exposure: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    snp = np.asarray(snp, dtype=np.float64)
    exposure = np.asarray(exposure, dtype=np.float64)
    if snp.shape != exposure.shape or snp.ndim != 1:
        raise ValueError("SNP column and exposure must be 1-D arrays of equal length")

    reduced = np.column_stack([np.ones_like(snp), snp, exposure])
    full = np.column_stack([reduced, snp * exposure])
    return reduced, full


def _fit_binomial(y: np.ndarray, X: np.ndarray, maxiter: int, label: str,
               snp_index: Optional[int] = None):
    if np.linalg.matrix_rank(X) < X.shape[1]:
        raise FitFailureError("LRT", f"{label} model design is rank deficient", snp_index=snp_index)

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", ConvergenceWarning)
            warnings.simplefilter("error", PerfectSeparationWarning)
            result = sm.GLM(y, X, family=sm.families.Binomial()).fit(maxiter=maxiter)
    except (ConvergenceWarning, PerfectSeparationWarning, PerfectSeparationError,
            np.linalg.LinAlgError) as exc:
        raise FitFailureError("LRT", f"{label} model: {exc}", snp_index=snp_index) from exc

    if not result.converged:
        raise FitFailureError("LRT", f"{label} model did not converge", snp_index=snp_index)

    # IRLS can stop on a flat deviance before statsmodels flags the separation
    if np.allclose(result.fittedvalues, y, rtol=0.0, atol=_SEPARATION_ATOL):
        raise FitFailureError("LRT", f"{label} model: outcome is completely separated",
                              snp_index=snp_index)
    return result


def fit_interaction_lrt(outcome: np.ndarray,
                        snp: np.ndarray,
                        exposure: np.ndarray,
                        maxiter: int = 100,
                        snp_index: Optional[int] = None) -> Tuple[float, float, float, float]:
    """
    Perform a likelihood-ratio test for the SNP x exposure term.

    Args:
        outcome: Binary case/control outcome (n,)
        snp: Dosage column for one SNP (n,)
        exposure: Binary exposure (n,)
        maxiter: IRLS iterations allowed per fit
        snp_index: SNP index, only used to label failures

    Returns:
        Tuple (LRT_statistic, p_value, beta_interaction, se_interaction)

    Raises:
        FitFailureError: if either fit fails to converge, the outcome is
            completely separated, or the design is rank deficient
    """
    y = np.asarray(outcome, dtype=np.float64)
    if y.shape != np.shape(snp):
        raise ValueError("Outcome and SNP column must have same length")
    if y.size == 0 or y.min() == y.max():
        raise FitFailureError("LRT", "outcome has a single class", snp_index=snp_index)

    reduced_X, full_X = _interaction_designs(snp, exposure)

    reduced = _fit_binomial(y, reduced_X, maxiter, "reduced", snp_index)
    full = _fit_binomial(y, full_X, maxiter, "full", snp_index)

    # LRT = 2 * (LL_full - LL_reduced); clip tiny negatives from optimizer noise
    lrt_stat = max(2.0 * (full.llf - reduced.llf), 0.0)
    p_value = stats.chi2.sf(lrt_stat, df=1)

    beta = float(full.params[-1])
    se = float(full.bse[-1])
    return float(lrt_stat), float(p_value), beta, se


def lr_interaction_test(outcome: np.ndarray,
                        snp: np.ndarray,
                        exposure: np.ndarray,
                        maxiter: int = 100,
                        snp_index: Optional[int] = None) -> float:
    """p-value of the 1 d.f. likelihood-ratio test for SNP x exposure"""
    return fit_interaction_lrt(outcome, snp, exposure, maxiter=maxiter, snp_index=snp_index)[1]
