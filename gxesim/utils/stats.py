"""
Statistical utilities for scoring interaction detection
"""

import numpy as np
from typing import Optional
from scipy.special import expit, logit as _logit

from .data_types import ContingencyCounts, DetectionMetrics

COMPARISON_MODES = ("pvalue", "nonzero")


def logistic(eta: np.ndarray) -> np.ndarray:
    """Logistic link 1 / (1 + exp(-eta))"""
    return expit(eta)


def logit(p: np.ndarray) -> np.ndarray:
    """Inverse of the logistic link"""
    return _logit(p)


def decide(signals: np.ndarray,
           threshold: Optional[float] = None,
           mode: str = "pvalue") -> np.ndarray:
    """Turn raw signals into detection calls

    Args:
        signals: p-values ('pvalue' mode) or coefficient estimates ('nonzero' mode)
        threshold: p-value cutoff, required in 'pvalue' mode
        mode: 'pvalue' calls signal <= threshold, 'nonzero' calls signal != 0

    Returns:
        Boolean array of positive calls
    """
    signals = np.asarray(signals, dtype=np.float64)
    if mode == "pvalue":
        if threshold is None:
            raise ValueError("A threshold is required in 'pvalue' mode")
        if np.isnan(signals).any():
            raise ValueError("p-values must not contain NaN")
        return signals <= threshold
    if mode == "nonzero":
        return signals != 0
    raise ValueError(f"Unknown comparison mode: {mode}")


def contingency_table(signals: np.ndarray,
                      truths: np.ndarray,
                      threshold: Optional[float] = None,
                      mode: str = "pvalue") -> ContingencyCounts:
    """Cross-tabulate truth labels against detection calls

    Args:
        signals: Decision signals, aligned index-for-index with `truths`
        truths: Binary ground-truth interaction labels
        threshold: p-value cutoff for 'pvalue' mode
        mode: 'pvalue' or 'nonzero'

    Returns:
        ContingencyCounts with S (truth 1, called), T (truth 1, missed),
        V (truth 0, called) and U (truth 0, not called)
    """
    truths = np.asarray(truths)
    if len(truths) != len(signals):
        raise ValueError("Signals and truth labels must have same length")
    if truths.size and not np.isin(truths, (0, 1)).all():
        raise ValueError("Truth labels must be binary")

    called = decide(signals, threshold, mode)
    truth = truths.astype(bool)

    return ContingencyCounts(
        S=int(np.sum(truth & called)),
        T=int(np.sum(truth & ~called)),
        V=int(np.sum(~truth & called)),
        U=int(np.sum(~truth & ~called)),
    )


def _ratio(num: float, den: float) -> float:
    if den == 0:
        return float("nan")
    return float(num) / float(den)


def classification_metrics(counts: ContingencyCounts) -> DetectionMetrics:
    """Derive recall, specificity, accuracy, precision, F-score and FPR

    Ratios with a zero denominator are NaN, never 0 or 1.
    """
    S, T, V, U = counts.as_tuple()
    recall = _ratio(S, S + T)
    specificity = _ratio(U, V + U)
    accuracy = _ratio(S + U, S + T + V + U)
    precision = _ratio(S, S + V)

    if np.isnan(precision) or np.isnan(recall):
        f_score = float("nan")
    else:
        f_score = _ratio(2.0 * precision * recall, precision + recall)

    fpr = float("nan") if np.isnan(specificity) else 1.0 - specificity

    return DetectionMetrics(
        recall=recall,
        specificity=specificity,
        accuracy=accuracy,
        precision=precision,
        f_score=f_score,
        fpr=fpr,
    )
