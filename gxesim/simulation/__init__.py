"""
Synthetic cohort and outcome generation
"""

from .generative import generate_cohort, generate_realization, interaction_counts

__all__ = ['generate_cohort', 'generate_realization', 'interaction_counts']
