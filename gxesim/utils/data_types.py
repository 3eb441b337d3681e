"""
Core data structures for gxesim
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.special import expit

METHODS: Tuple[str, ...] = ("LRT", "Lasso")
SCENARIOS: Tuple[str, ...] = ("interaction", "no_interaction")
METRIC_NAMES: Tuple[str, ...] = (
    "Recall",
    "Specificity",
    "Accuracy",
    "Precision",
    "F_score",
    "FPR",
)


def _readonly(values: np.ndarray, dtype) -> np.ndarray:
    arr = np.array(values, dtype=dtype, copy=True)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class Cohort:
    """Synthetic cohort shared by every realization of a run

    Attributes:
        genotypes: Dosage matrix (n_individuals x n_snps) with values in {0, 1, 2}
        minor_allele_freqs: Per-SNP allele frequency used to draw the dosages
        exposure: Binary environmental exposure per individual
    """

    genotypes: np.ndarray
    minor_allele_freqs: np.ndarray
    exposure: np.ndarray

    def __post_init__(self):
        genotypes = _readonly(self.genotypes, np.int8)
        mafs = _readonly(self.minor_allele_freqs, np.float64)
        exposure = _readonly(self.exposure, np.int8)

        if genotypes.ndim != 2:
            raise ValueError("Genotype matrix must be 2-dimensional")
        if mafs.shape != (genotypes.shape[1],):
            raise ValueError("Need exactly one allele frequency per SNP")
        if exposure.shape != (genotypes.shape[0],):
            raise ValueError("Need exactly one exposure value per individual")

        object.__setattr__(self, "genotypes", genotypes)
        object.__setattr__(self, "minor_allele_freqs", mafs)
        object.__setattr__(self, "exposure", exposure)

    @property
    def n_individuals(self) -> int:
        return self.genotypes.shape[0]

    @property
    def n_snps(self) -> int:
        return self.genotypes.shape[1]

    def interaction_matrix(self) -> np.ndarray:
        """Exposure-by-dosage products (n_individuals x n_snps)"""
        return self.genotypes.astype(np.float64) * self.exposure[:, np.newaxis]


@dataclass(frozen=True, eq=False)
class Realization:
    """One outcome draw with known coefficients on top of a Cohort.

    `active_snps` and `interacting_snps` keep the order they were sampled in.
    Outcomes are obtained by thresholding `uniforms` against the success
    probabilities, so the interaction and no-interaction outcomes share their
    randomness and differ only through the interaction term.
    """

    cohort: Cohort
    intercept: float
    snp_coefs: np.ndarray
    env_coef: float
    interaction_coefs: np.ndarray
    active_snps: np.ndarray
    interacting_snps: np.ndarray
    uniforms: np.ndarray

    def __post_init__(self):
        m = self.cohort.n_snps
        object.__setattr__(self, "snp_coefs", _readonly(self.snp_coefs, np.float64))
        object.__setattr__(self, "interaction_coefs", _readonly(self.interaction_coefs, np.float64))
        object.__setattr__(self, "active_snps", _readonly(self.active_snps, np.int64))
        object.__setattr__(self, "interacting_snps", _readonly(self.interacting_snps, np.int64))
        object.__setattr__(self, "uniforms", _readonly(self.uniforms, np.float64))

        if self.snp_coefs.shape != (m,) or self.interaction_coefs.shape != (m,):
            raise ValueError("Coefficient vectors must have one entry per SNP")
        if self.uniforms.shape != (self.cohort.n_individuals,):
            raise ValueError("Need exactly one uniform draw per individual")
        if not np.isin(self.interacting_snps, self.active_snps).all():
            raise ValueError("Interacting SNPs must be a subset of the active SNPs")
        inactive = np.setdiff1d(np.arange(m), self.active_snps)
        if np.any(self.interaction_coefs[inactive] != 0):
            raise ValueError("Interaction coefficients must be zero outside the active SNPs")

    @property
    def n_snps(self) -> int:
        return self.cohort.n_snps

    def linear_predictor(self, include_interaction: bool = True) -> np.ndarray:
        """eta = intercept + X b + e * env_coef [+ (e * X) g]"""
        cohort = self.cohort
        eta = (
            self.intercept
            + cohort.genotypes.astype(np.float64) @ self.snp_coefs
            + self.env_coef * cohort.exposure.astype(np.float64)
        )
        if include_interaction:
            eta = eta + cohort.interaction_matrix() @ self.interaction_coefs
        return eta

    @property
    def prob_with_interaction(self) -> np.ndarray:
        return expit(self.linear_predictor(include_interaction=True))

    @property
    def prob_no_interaction(self) -> np.ndarray:
        return expit(self.linear_predictor(include_interaction=False))

    @property
    def outcome_with_interaction(self) -> np.ndarray:
        return (self.uniforms < self.prob_with_interaction).astype(np.int8)

    @property
    def outcome_no_interaction(self) -> np.ndarray:
        return (self.uniforms < self.prob_no_interaction).astype(np.int8)

    def truth_labels(self) -> np.ndarray:
        """Binary interaction labels for all SNPs (1 if SNP interacts)"""
        labels = np.zeros(self.n_snps, dtype=np.int8)
        labels[self.interacting_snps] = 1
        return labels

    def without_interaction(self) -> "Realization":
        """Counterfactual with the interaction term masked out.

        Same cohort, coefficients and uniforms; the returned realization's
        `outcome_with_interaction` equals this one's `outcome_no_interaction`.
        """
        return Realization(
            cohort=self.cohort,
            intercept=self.intercept,
            snp_coefs=self.snp_coefs,
            env_coef=self.env_coef,
            interaction_coefs=np.zeros(self.n_snps),
            active_snps=self.active_snps,
            interacting_snps=np.array([], dtype=np.int64),
            uniforms=self.uniforms,
        )

    def observed_prevalence(self, include_interaction: bool = True) -> float:
        """Fraction of cases in the realized outcome"""
        if include_interaction:
            return float(self.outcome_with_interaction.mean())
        return float(self.outcome_no_interaction.mean())


@dataclass
class InteractionDesign:
    """Design matrix for the joint penalized fit with a fixed column order.

    Columns are laid out as [SNP_0..SNP_{m-1}, ENV, SNPxENV_0..SNPxENV_{m-1}]; the
    entry at `interaction_columns[i]` belongs to SNP i.
    """

    matrix: np.ndarray
    columns: List[str]
    n_snps: int

    def __post_init__(self):
        m = self.n_snps
        if self.matrix.shape[1] != 2 * m + 1 or len(self.columns) != 2 * m + 1:
            raise ValueError(f"Interaction design must have {2 * m + 1} columns")
        if self.columns[m] != "ENV":
            raise ValueError("Exposure column must sit between SNP and interaction columns")
        for i in range(m):
            if self.columns[i] != f"SNP_{i}" or self.columns[m + 1 + i] != f"SNPxENV_{i}":
                raise ValueError(f"Column order broken at SNP {i}")

    @property
    def interaction_columns(self) -> slice:
        return slice(self.n_snps + 1, 2 * self.n_snps + 1)


@dataclass
class TrialResults:
    """Raw decision signals and aligned truth labels from a set of trials

    The likelihood-ratio family holds one entry per (realization, active SNP);
    the lasso family holds one entry per (realization, SNP). The two families
    have different denominators and are never merged.
    """

    lr_pvalues_interaction: np.ndarray
    lr_pvalues_no_interaction: np.ndarray
    lr_truth: np.ndarray
    lasso_coefs_interaction: np.ndarray
    lasso_coefs_no_interaction: np.ndarray
    lasso_truth: np.ndarray
    n_realizations: int = 0
    n_skipped: int = 0
    failures: List[str] = field(default_factory=list)
    lr_snp_indices: Optional[np.ndarray] = None
    prevalence_interaction: List[float] = field(default_factory=list)
    prevalence_no_interaction: List[float] = field(default_factory=list)

    def __post_init__(self):
        if not (len(self.lr_pvalues_interaction) == len(self.lr_pvalues_no_interaction)
                == len(self.lr_truth)):
            raise ValueError("Likelihood-ratio signals and truth labels must have same length")
        if not (len(self.lasso_coefs_interaction) == len(self.lasso_coefs_no_interaction)
                == len(self.lasso_truth)):
            raise ValueError("Lasso signals and truth labels must have same length")

    @property
    def n_completed(self) -> int:
        return self.n_realizations - self.n_skipped

    @property
    def observed_prevalence(self) -> Dict[str, float]:
        """Mean realized case fraction per scenario"""
        def _mean(values: Sequence[float]) -> float:
            return float(np.mean(values)) if len(values) else float("nan")

        return {
            "interaction": _mean(self.prevalence_interaction),
            "no_interaction": _mean(self.prevalence_no_interaction),
        }

    def family(self, method: str, scenario: str) -> Tuple[np.ndarray, np.ndarray]:
        """Return (signals, truth) for one method/scenario combination.

        Truth is all-zero for the no-interaction scenario.
        """
        if method == "LRT":
            signals = (self.lr_pvalues_interaction if scenario == "interaction"
                       else self.lr_pvalues_no_interaction)
            truth = self.lr_truth
        elif method == "Lasso":
            signals = (self.lasso_coefs_interaction if scenario == "interaction"
                       else self.lasso_coefs_no_interaction)
            truth = self.lasso_truth
        else:
            raise ValueError(f"Unknown method: {method}")

        if scenario == "no_interaction":
            truth = np.zeros_like(truth)
        elif scenario != "interaction":
            raise ValueError(f"Unknown scenario: {scenario}")
        return signals, truth


@dataclass(frozen=True)
class ContingencyCounts:
    """2x2 table: S true positives, T false negatives, V false positives, U true negatives"""

    S: int = 0
    T: int = 0
    V: int = 0
    U: int = 0

    @property
    def total(self) -> int:
        return self.S + self.T + self.V + self.U

    @property
    def positives(self) -> int:
        return self.S + self.T

    @property
    def negatives(self) -> int:
        return self.V + self.U

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return self.S, self.T, self.V, self.U

    def to_dict(self) -> Dict[str, int]:
        return {"S": self.S, "T": self.T, "V": self.V, "U": self.U}

    def __add__(self, other: "ContingencyCounts") -> "ContingencyCounts":
        if not isinstance(other, ContingencyCounts):
            return NotImplemented
        return ContingencyCounts(
            self.S + other.S, self.T + other.T, self.V + other.V, self.U + other.U
        )


@dataclass(frozen=True)
class DetectionMetrics:
    """Classification metrics; NaN marks an undefined ratio"""

    recall: float
    specificity: float
    accuracy: float
    precision: float
    f_score: float
    fpr: float

    def to_dict(self) -> Dict[str, float]:
        return dict(zip(METRIC_NAMES, (
            self.recall, self.specificity, self.accuracy,
            self.precision, self.f_score, self.fpr,
        )))

    def to_series(self, name: Optional[str] = None) -> pd.Series:
        return pd.Series(self.to_dict(), name=name, dtype=np.float64)

    def undefined(self) -> List[str]:
        """Names of metrics whose denominator was zero"""
        return [k for k, v in self.to_dict().items() if np.isnan(v)]


def summarize(obj: Any) -> Dict[str, Any]:
    """JSON-friendly view of counts or metrics (NaN becomes None)"""
    values = obj.to_dict()
    return {
        k: (None if isinstance(v, float) and np.isnan(v) else v)
        for k, v in values.items()
    }
