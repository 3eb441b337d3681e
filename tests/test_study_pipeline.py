import json
from unittest.mock import patch

import numpy as np
import pandas as pd
import pytest

from gxesim.pipelines.study import (
    GxEStudyPipeline,
    format_metrics_table,
    run_full_study,
    score_trials,
)
from gxesim.utils.config import LassoSettings, SimulationConfig
from gxesim.utils.data_types import METRIC_NAMES, DetectionMetrics, TrialResults
from gxesim.utils.errors import ConfigurationError


def _fake_lr(outcome, snp, exposure, maxiter=100, snp_index=None):
    return 0.001 if snp_index < 3 else 0.8


def _fake_lasso(outcome, genotypes, exposure, settings=None, random_state=None):
    coefs = np.zeros(genotypes.shape[1])
    coefs[:2] = 0.3
    return coefs


def _trials() -> TrialResults:
    return TrialResults(
        lr_pvalues_interaction=np.array([0.01, 0.2, 0.04, 0.5]),
        lr_pvalues_no_interaction=np.array([0.6, 0.03, 0.7, 0.9]),
        lr_truth=np.array([1, 1, 0, 0]),
        lasso_coefs_interaction=np.array([0.5, 0.0, 0.0, 0.1, 0.0, 0.0]),
        lasso_coefs_no_interaction=np.zeros(6),
        lasso_truth=np.array([1, 0, 0, 1, 0, 0]),
        n_realizations=2,
    )


def test_score_trials_covers_four_combinations() -> None:
    counts, metrics = score_trials(_trials(), alpha=0.05)

    assert counts[("LRT", "interaction")].as_tuple() == (1, 1, 1, 1)
    assert counts[("LRT", "no_interaction")].as_tuple() == (0, 0, 1, 3)
    assert counts[("Lasso", "interaction")].as_tuple() == (2, 0, 0, 4)
    assert counts[("Lasso", "no_interaction")].as_tuple() == (0, 0, 0, 6)
    assert metrics[("Lasso", "interaction")].recall == pytest.approx(1.0)
    assert np.isnan(metrics[("Lasso", "no_interaction")].precision)
    assert metrics[("LRT", "no_interaction")].fpr == pytest.approx(0.25)


def test_format_metrics_table_renders_nan_distinctly() -> None:
    _, metrics = score_trials(_trials(), alpha=0.05)

    table, formatted = format_metrics_table(metrics)

    assert table.shape == (6, 4)
    assert table.index.tolist() == list(METRIC_NAMES)
    assert table.columns.tolist() == [
        "LRT (interaction)", "LRT (no_interaction)",
        "Lasso (interaction)", "Lasso (no_interaction)",
    ]
    assert np.isnan(table.loc["Recall", "LRT (no_interaction)"])
    assert "NA" in formatted
    assert "0.0000" in formatted


def test_format_metrics_table_subset() -> None:
    metrics = {("LRT", "interaction"): DetectionMetrics(1.0, 1.0, 1.0, 1.0, 1.0, 0.0)}

    table, _ = format_metrics_table(metrics)

    assert table.columns.tolist() == ["LRT (interaction)"]


@patch('gxesim.pipelines.trials.lasso_interaction_test', side_effect=_fake_lasso)
@patch('gxesim.pipelines.trials.lr_interaction_test', side_effect=_fake_lr)
def test_pipeline_run_and_save(mock_lr, mock_lasso, tmp_path) -> None:
    config = SimulationConfig(n_individuals=60, n_snps=6, n_realizations=3,
                              prev_snps=0.5, prev_interactions=0.7, seed=21)

    results = GxEStudyPipeline(config, output_dir=str(tmp_path / "out"), verbose=False).run()

    lr_total = results.counts[("LRT", "interaction")].total
    lasso_total = results.counts[("Lasso", "interaction")].total
    assert lr_total == 3 * 3
    assert lasso_total == 3 * 6
    assert results.counts[("LRT", "no_interaction")].total == lr_total
    assert results.counts[("Lasso", "no_interaction")].S == 0
    assert results.counts[("Lasso", "no_interaction")].T == 0
    assert results.table.shape == (6, 4)

    out = tmp_path / "out"
    metrics_csv = pd.read_csv(out / "metrics_table.csv", index_col="Metric")
    assert metrics_csv.index.tolist() == list(METRIC_NAMES)
    counts_csv = pd.read_csv(out / "contingency_counts.csv")
    assert counts_csv["Total"].tolist() == [lr_total, lr_total, lasso_total, lasso_total]
    summary = json.loads((out / "run_summary.json").read_text())
    assert summary["n_realizations"] == 3
    assert summary["config"]["seed"] == 21
    assert summary["metrics"]["LRT (no_interaction)"]["Recall"] is None


@patch('gxesim.pipelines.trials.lasso_interaction_test', side_effect=_fake_lasso)
@patch('gxesim.pipelines.trials.lr_interaction_test', side_effect=_fake_lr)
def test_pipeline_verbose_logging(mock_lr, mock_lasso, capsys) -> None:
    config = SimulationConfig(n_individuals=40, n_snps=4, n_realizations=1, seed=2)

    GxEStudyPipeline(config, verbose=True).run()

    out = capsys.readouterr().out
    assert "Step 1: Simulating realizations" in out
    assert "Scoring completed in" in out
    assert "Specificity" in out


@patch('gxesim.pipelines.trials.lasso_interaction_test', side_effect=_fake_lasso)
@patch('gxesim.pipelines.trials.lr_interaction_test', side_effect=_fake_lr)
def test_zero_interaction_run_has_no_true_positives(mock_lr, mock_lasso) -> None:
    with pytest.warns(UserWarning, match="undefined metrics"):
        results = run_full_study(50, 6, 4, 0.5, 0.5, 0.0, 0.05, seed=3)

    for method in ("LRT", "Lasso"):
        counts = results.counts[(method, "interaction")]
        assert counts.S == 0 and counts.T == 0
        assert np.isnan(results.metrics[(method, "interaction")].recall)


def test_pipeline_rejects_bad_configuration() -> None:
    with pytest.raises(ConfigurationError):
        GxEStudyPipeline(SimulationConfig(prev_snps=2.0), verbose=False)


def test_end_to_end_with_real_fits() -> None:
    config = SimulationConfig(
        n_individuals=400, n_snps=4, n_realizations=2,
        prev_snps=0.5, prev_interactions=0.5, alpha=0.05, seed=17,
        on_fit_failure="skip",
        lasso=LassoSettings(n_folds=3, n_cs=6, max_iter=2000),
    )

    results = GxEStudyPipeline(config, verbose=False).run()

    completed = results.trials.n_completed
    assert results.counts[("LRT", "interaction")].total == completed * 2
    assert results.counts[("Lasso", "interaction")].total == completed * 4
    for key, metrics in results.metrics.items():
        for name, value in metrics.to_dict().items():
            assert np.isnan(value) or 0.0 <= value <= 1.0
    pvalues = results.trials.lr_pvalues_interaction
    assert np.all((pvalues >= 0) & (pvalues <= 1))

