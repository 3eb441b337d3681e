"""
Interaction detection methods
"""

from .lrt import fit_interaction_lrt, lr_interaction_test
from .lasso import build_interaction_design, fit_interaction_lasso, lasso_interaction_test

__all__ = [
    'fit_interaction_lrt',
    'lr_interaction_test',
    'build_interaction_design',
    'fit_interaction_lasso',
    'lasso_interaction_test',
]
