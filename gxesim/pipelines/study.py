"""
Simulation Study Pipeline Module

Wires the generative model, the trial runner and the scorer together for one
full run, and reports recall, specificity, accuracy, precision, F-score and
false-positive rate for every method/scenario combination.
"""

import json
import time
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import numpy as np
import pandas as pd

from ..utils.config import SimulationConfig
from ..utils.data_types import (
    METHODS,
    METRIC_NAMES,
    SCENARIOS,
    ContingencyCounts,
    DetectionMetrics,
    TrialResults,
    summarize,
)
from ..utils.stats import classification_metrics, contingency_table
from .trials import run_trials

Key = Tuple[str, str]


def column_label(method: str, scenario: str) -> str:
    return f"{method} ({scenario})"


def format_metrics_table(metrics: Dict[Key, DetectionMetrics], digits: int = 4) -> Tuple[pd.DataFrame, str]:
    """Build the metrics table and its printable form

    Rows are metric names, columns are "<method> (<scenario>)". Undefined
    metrics stay NaN in the DataFrame and print as "NA".
    """
    columns = {}
    for method in METHODS:
        for scenario in SCENARIOS:
            if (method, scenario) in metrics:
                columns[column_label(method, scenario)] = metrics[(method, scenario)].to_dict()

    table = pd.DataFrame(columns, index=list(METRIC_NAMES), dtype=np.float64)
    formatted = table.to_string(na_rep="NA", float_format=lambda v: f"{v:.{digits}f}")
    return table, formatted


@dataclass
class StudyResults:
    """Structured output of one simulation study"""

    config: SimulationConfig
    trials: TrialResults
    counts: Dict[Key, ContingencyCounts]
    metrics: Dict[Key, DetectionMetrics]
    table: pd.DataFrame
    formatted: str
    elapsed_seconds: float = 0.0

    def counts_dataframe(self) -> pd.DataFrame:
        rows = []
        for (method, scenario), counts in self.counts.items():
            row = {'Method': method, 'Scenario': scenario}
            row.update(counts.to_dict())
            row['Total'] = counts.total
            rows.append(row)
        return pd.DataFrame(rows, columns=['Method', 'Scenario', 'S', 'T', 'V', 'U', 'Total'])

    def summary(self) -> Dict[str, object]:
        return {
            'config': self.config.to_dict(),
            'n_realizations': self.trials.n_realizations,
            'n_skipped': self.trials.n_skipped,
            'failures': list(self.trials.failures),
            'observed_prevalence': {
                k: (None if np.isnan(v) else v)
                for k, v in self.trials.observed_prevalence.items()
            },
            'counts': {column_label(*k): summarize(v) for k, v in self.counts.items()},
            'metrics': {column_label(*k): summarize(v) for k, v in self.metrics.items()},
            'elapsed_seconds': self.elapsed_seconds,
        }

    def save(self, output_dir: Union[str, Path]) -> Dict[str, Path]:
        """Write metrics table, contingency counts and a JSON run summary"""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        paths = {
            'metrics': output_dir / "metrics_table.csv",
            'counts': output_dir / "contingency_counts.csv",
            'summary': output_dir / "run_summary.json",
        }
        self.table.to_csv(paths['metrics'], na_rep="NA", index_label="Metric")
        self.counts_dataframe().to_csv(paths['counts'], index=False)
        with open(paths['summary'], 'w') as fh:
            json.dump(self.summary(), fh, indent=2)
        return paths


def score_trials(trials: TrialResults, alpha: float) -> Tuple[Dict[Key, ContingencyCounts], Dict[Key, DetectionMetrics]]:
    """Contingency counts and metrics for all four method/scenario combinations"""
    counts: Dict[Key, ContingencyCounts] = {}
    metrics: Dict[Key, DetectionMetrics] = {}
    for method in METHODS:
        mode = "pvalue" if method == "LRT" else "nonzero"
        for scenario in SCENARIOS:
            signals, truth = trials.family(method, scenario)
            table = contingency_table(signals, truth, threshold=alpha, mode=mode)
            counts[(method, scenario)] = table
            metrics[(method, scenario)] = classification_metrics(table)
    return counts, metrics


class GxEStudyPipeline:
    """
    High-level pipeline for a gene-environment interaction simulation study.

    Typical workflow:
        1. Initialize with a SimulationConfig (validated immediately)
        2. run() draws the cohort, the realizations and scores both methods
        3. Results are optionally saved to an output directory

    Example:
        >>> config = SimulationConfig(n_individuals=500, n_snps=10,
        ...                           n_realizations=20, seed=1)
        >>> results = GxEStudyPipeline(config).run()
        >>> print(results.formatted)
    """

    def __init__(self,
                 config: SimulationConfig,
                 output_dir: Optional[str] = None,
                 verbose: bool = True):
        self.config = config.validate()
        self.output_dir = Path(output_dir) if output_dir else None
        self.verbose = verbose
        self.results: Optional[StudyResults] = None

    def log(self, message: str):
        """Internal logger"""
        if self.verbose:
            print(message)

    def log_step(self, step_name: str, start_time: Optional[float] = None):
        """Log a pipeline step with optional timing"""
        if start_time is not None:
            elapsed = time.time() - start_time
            self.log(f"{step_name} completed in {elapsed:.2f} seconds")
        else:
            self.log(f"{step_name}...")

    def run(self, rng: Optional[np.random.Generator] = None) -> StudyResults:
        config = self.config
        run_start = time.time()

        step_start = time.time()
        self.log_step("Step 1: Simulating realizations and applying detection methods")
        n_active, n_interacting = config.derived_counts()
        self.log(f"   {config.n_individuals} individuals x {config.n_snps} SNPs, "
                 f"{config.n_realizations} realizations")
        self.log(f"   Active SNPs per realization: {n_active}, interacting: {n_interacting}")
        trials = run_trials(config, rng=rng, verbose=self.verbose)
        if trials.n_skipped:
            self.log(f"   Skipped realizations: {trials.n_skipped}")
        prevalence = trials.observed_prevalence
        self.log(f"   Observed case fraction: {prevalence['interaction']:.3f} (interaction), "
                 f"{prevalence['no_interaction']:.3f} (no interaction)")
        self.log_step("Simulation", step_start)

        step_start = time.time()
        self.log_step("Step 2: Scoring decisions against ground truth")
        counts, metrics = score_trials(trials, config.alpha)
        for key, value in metrics.items():
            # Recall and precision are undefined by construction without true interactions
            undefined = value.undefined() if key[1] == "interaction" else []
            if undefined:
                warnings.warn(f"{column_label(*key)}: undefined metrics {', '.join(undefined)}")
        table, formatted = format_metrics_table(metrics)
        self.log_step("Scoring", step_start)

        self.results = StudyResults(
            config=config,
            trials=trials,
            counts=counts,
            metrics=metrics,
            table=table,
            formatted=formatted,
            elapsed_seconds=time.time() - run_start,
        )

        self.log("\n" + formatted)

        if self.output_dir is not None:
            paths = self.results.save(self.output_dir)
            self.log(f"\nSaved results to {self.output_dir} ({', '.join(p.name for p in paths.values())})")

        return self.results


def run_full_study(n_individuals: int,
                   n_snps: int,
                   n_realizations: int,
                   prevalence: float,
                   prev_snps: float,
                   prev_interactions: float,
                   alpha: float,
                   seed: Optional[int] = None,
                   verbose: bool = False,
                   **options) -> StudyResults:
    """Run one full study from plain parameters

    Extra keyword options are passed to SimulationConfig (e.g.
    `on_fit_failure`, `lasso`).
    """
    config = SimulationConfig(
        n_individuals=n_individuals,
        n_snps=n_snps,
        n_realizations=n_realizations,
        prevalence=prevalence,
        prev_snps=prev_snps,
        prev_interactions=prev_interactions,
        alpha=alpha,
        seed=seed,
        **options,
    )
    return GxEStudyPipeline(config, verbose=verbose).run()
