"""
Joint L1-penalized logistic regression over all SNP x exposure terms.

The design matrix always has 2m + 1 columns in the order
    [SNP_0 .. SNP_{m-1}, ENV, SNPxENV_0 .. SNPxENV_{m-1}]
and the returned vector holds the m interaction coefficients in SNP order.
An exact zero means the penalty removed the term (no interaction called).
"""

import warnings
from typing import Optional, Tuple

import numpy as np
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import LogisticRegressionCV
from sklearn.model_selection import StratifiedKFold

from ..utils.config import LassoSettings
from ..utils.data_types import InteractionDesign
from ..utils.errors import FitFailureError


def build_interaction_design(genotypes: np.ndarray, exposure: np.ndarray) -> InteractionDesign:
    """Concatenate SNP, exposure and SNP x exposure columns in fixed order"""
    X = np.asarray(genotypes, dtype=np.float64)
    env = np.asarray(exposure, dtype=np.float64)
    if X.ndim != 2:
        raise ValueError("Genotype matrix must be 2-dimensional")
    if env.shape != (X.shape[0],):
        raise ValueError("Exposure must have one value per individual")

    m = X.shape[1]
    matrix = np.hstack([X, env[:, np.newaxis], X * env[:, np.newaxis]])
    columns = (
        [f"SNP_{i}" for i in range(m)]
        + ["ENV"]
        + [f"SNPxENV_{i}" for i in range(m)]
    )
    return InteractionDesign(matrix=matrix, columns=columns, n_snps=m)


def _standardize(matrix: np.ndarray):
    center = matrix.mean(axis=0)
    scale = matrix.std(axis=0)
    # Constant columns stay constant; their coefficient is penalized to zero
    scale[scale == 0] = 1.0
    return (matrix - center) / scale, scale


def fit_interaction_lasso(outcome: np.ndarray,
                          genotypes: np.ndarray,
                          exposure: np.ndarray,
                          settings: Optional[LassoSettings] = None,
                          random_state: Optional[int] = None
                          ) -> Tuple[LogisticRegressionCV, InteractionDesign, np.ndarray]:
    """Fit the cross-validated L1 logistic model on the standardized design

    Args:
        outcome: Binary case/control outcome (n,)
        genotypes: Dosage matrix (n x m)
        exposure: Binary exposure (n,)
        settings: Cross-validation settings
        random_state: Seed for fold assignment and solver shuffling

    Returns:
        Tuple (fitted model, design, column scales). Model coefficients are
        on the standardized scale; divide by the column scales to map back.

    Raises:
        FitFailureError: if the response has a single class, a fold cannot
            be fitted, or the solver does not converge
    """
    settings = settings or LassoSettings()
    y = np.asarray(outcome).astype(np.int64)
    design = build_interaction_design(genotypes, exposure)
    if y.shape != (design.matrix.shape[0],):
        raise ValueError("Outcome must have one value per individual")
    if np.unique(y).size < 2:
        raise FitFailureError("Lasso", "outcome has a single class")

    scaled, scale = _standardize(design.matrix)

    folds = StratifiedKFold(n_splits=settings.n_folds, shuffle=True, random_state=random_state)
    # liblinear penalizes the intercept as a weight on a constant column of
    # value intercept_scaling; a large column keeps that penalty negligible
    model = LogisticRegressionCV(
        Cs=settings.n_cs,
        cv=folds,
        penalty="l1",
        solver=settings.solver,
        scoring="neg_log_loss",
        max_iter=settings.max_iter,
        tol=settings.tol,
        intercept_scaling=settings.intercept_scaling,
        refit=True,
        random_state=random_state,
    )

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", ConvergenceWarning)
            # scikit-learn 1.8 and 1.9 deprecate `penalty` here; pinned below 1.10 in setup.py
            warnings.simplefilter("ignore", FutureWarning)
            model.fit(scaled, y)
    except ConvergenceWarning as exc:
        raise FitFailureError("Lasso", f"solver did not converge: {exc}") from exc
    except ValueError as exc:
        raise FitFailureError("Lasso", str(exc)) from exc

    return model, design, scale


def lasso_interaction_test(outcome: np.ndarray,
                           genotypes: np.ndarray,
                           exposure: np.ndarray,
                           settings: Optional[LassoSettings] = None,
                           random_state: Optional[int] = None) -> np.ndarray:
    """Interaction coefficients of the cross-validated L1 logistic model

    Returns:
        Array of m interaction coefficients on the original column scale,
        entry i belonging to SNP i
    """
    model, design, scale = fit_interaction_lasso(outcome, genotypes, exposure,
                                                 settings=settings, random_state=random_state)
    coefs = model.coef_[0] / scale
    interaction = coefs[design.interaction_columns]
    if interaction.shape != (design.n_snps,):
        raise FitFailureError("Lasso", "fitted model has the wrong number of coefficients")
    return interaction
