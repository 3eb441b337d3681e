"""
Configuration for simulation studies
"""

import warnings
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

from ..simulation.generative import interaction_counts
from .errors import ConfigurationError

FIT_FAILURE_POLICIES = ("raise", "skip")


@dataclass
class LassoSettings:
    """Cross-validation settings for the penalized interaction fit."""

    n_folds: int = 10
    n_cs: int = 20
    max_iter: int = 1000
    solver: str = "liblinear"
    tol: float = 1e-4
    intercept_scaling: float = 1e3


@dataclass
class SimulationConfig:
    """Parameters of one simulation study.

    Attributes:
        n_individuals: Cohort size (n)
        n_snps: Number of simulated SNPs (m)
        n_realizations: Number of outcome realizations (N)
        prevalence: Probability that an individual is exposed (prev)
        prev_snps: Fraction of SNPs with a marginal effect (prev_s)
        prev_interactions: Fraction of active SNPs that also interact
            with the exposure (prev_i)
        alpha: p-value threshold for the likelihood-ratio test
        seed: Seed for the run's random generator
        on_fit_failure: 'raise' aborts the run on the first failed fit,
            'skip' drops the offending realization and counts it
    """

    n_individuals: int = 1000
    n_snps: int = 10
    n_realizations: int = 100
    prevalence: float = 0.5
    prev_snps: float = 0.6
    prev_interactions: float = 0.5
    alpha: float = 0.05
    seed: Optional[int] = None
    on_fit_failure: str = "raise"
    lr_maxiter: int = 100
    lasso: LassoSettings = field(default_factory=LassoSettings)

    def derived_counts(self) -> Tuple[int, int]:
        """Return (m_b, n_i): active SNP count and interacting SNP count."""
        return interaction_counts(self.n_snps, self.prev_snps, self.prev_interactions)

    def validate(self) -> "SimulationConfig":
        for name in ("n_individuals", "n_snps", "n_realizations", "lr_maxiter"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}", name)

        for name in ("prevalence", "prev_snps", "prev_interactions"):
            value = getattr(self, name)
            if not (0.0 <= value <= 1.0):
                raise ConfigurationError(f"{name} must be in [0, 1], got {value!r}", name)

        if not (0.0 < self.alpha < 1.0):
            raise ConfigurationError(f"alpha must be in (0, 1), got {self.alpha!r}", "alpha")

        if self.on_fit_failure not in FIT_FAILURE_POLICIES:
            raise ConfigurationError(
                f"on_fit_failure must be one of {FIT_FAILURE_POLICIES}, got {self.on_fit_failure!r}",
                "on_fit_failure",
            )

        lasso = self.lasso
        if lasso.n_folds < 2 or lasso.n_folds > self.n_individuals:
            raise ConfigurationError(
                f"lasso.n_folds must be between 2 and n_individuals, got {lasso.n_folds}",
                "lasso.n_folds",
            )
        if lasso.n_cs <= 0 or lasso.max_iter <= 0:
            raise ConfigurationError("lasso.n_cs and lasso.max_iter must be positive", "lasso")
        if lasso.tol <= 0:
            raise ConfigurationError("lasso.tol must be positive", "lasso.tol")
        if lasso.intercept_scaling <= 0:
            raise ConfigurationError("lasso.intercept_scaling must be positive", "lasso.intercept_scaling")

        n_active, n_interacting = self.derived_counts()
        if n_interacting > n_active:
            raise ConfigurationError(
                f"Interacting SNP count ({n_interacting}) exceeds active SNP count ({n_active})",
                "prev_interactions",
            )
        if n_active == 0:
            warnings.warn(
                f"prev_snps={self.prev_snps} with n_snps={self.n_snps} gives no active SNPs; "
                "likelihood-ratio metrics will be undefined"
            )
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
