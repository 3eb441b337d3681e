"""
Exception types raised by the simulation harness
"""

from typing import Any, Dict, Optional


class GxESimError(Exception):
    """Base exception for all gxesim errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(GxESimError, ValueError):
    """Raised when simulation parameters are out of range."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)
        self.field = field


class FitFailureError(GxESimError, RuntimeError):
    """Raised when a logistic or penalized logistic fit cannot be trusted.

    Covers non-convergence, rank-deficient designs, complete separation and
    single-class responses.
    """

    def __init__(self,
                 method: str,
                 reason: str,
                 snp_index: Optional[int] = None,
                 realization: Optional[int] = None):
        where = []
        if realization is not None:
            where.append(f"realization {realization}")
        if snp_index is not None:
            where.append(f"SNP {snp_index}")
        location = f" ({', '.join(where)})" if where else ""
        super().__init__(
            f"{method} fit failed{location}: {reason}",
            {"method": method, "reason": reason,
             "snp_index": snp_index, "realization": realization},
        )
        self.method = method
        self.reason = reason
        self.snp_index = snp_index
        self.realization = realization

    def with_realization(self, realization: int) -> "FitFailureError":
        """Return a copy tagged with the realization it occurred in."""
        return FitFailureError(self.method, self.reason,
                               snp_index=self.snp_index, realization=realization)
