"""
gxesim: Monte Carlo evaluation of gene-environment interaction tests

Simulates case/control cohorts with known SNP, exposure and SNP x exposure
effects, applies a per-SNP likelihood-ratio test and a cross-validated L1
logistic regression, and scores both against the simulated truth.
"""

__version__ = "0.1.0"

from .simulation.generative import generate_cohort, generate_realization
from .association.lrt import lr_interaction_test
from .association.lasso import lasso_interaction_test
from .pipelines.trials import run_trials
from .pipelines.study import GxEStudyPipeline, StudyResults, run_full_study
from .utils.config import SimulationConfig, LassoSettings
from .utils.stats import contingency_table, classification_metrics
from .utils.errors import ConfigurationError, FitFailureError

__all__ = [
    'generate_cohort',
    'generate_realization',
    'lr_interaction_test',
    'lasso_interaction_test',
    'run_trials',
    'GxEStudyPipeline',
    'StudyResults',
    'run_full_study',
    'SimulationConfig',
    'LassoSettings',
    'contingency_table',
    'classification_metrics',
    'ConfigurationError',
    'FitFailureError',
]
