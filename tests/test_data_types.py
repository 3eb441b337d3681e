import numpy as np
import pytest

from gxesim.utils.data_types import (
    METRIC_NAMES,
    Cohort,
    ContingencyCounts,
    DetectionMetrics,
    Realization,
    TrialResults,
    summarize,
)


def _cohort() -> Cohort:
    genotypes = np.array([[0, 1, 2], [1, 1, 0], [2, 0, 1], [0, 0, 1]])
    return Cohort(genotypes=genotypes,
                  minor_allele_freqs=np.array([0.1, 0.2, 0.3]),
                  exposure=np.array([1, 0, 1, 0]))


def _realization(cohort: Cohort, **overrides) -> Realization:
    params = dict(
        cohort=cohort,
        intercept=0.1,
        snp_coefs=np.array([0.5, 0.0, -0.3]),
        env_coef=0.2,
        interaction_coefs=np.array([1.0, 0.0, 0.0]),
        active_snps=np.array([2, 0]),
        interacting_snps=np.array([0]),
        uniforms=np.array([0.1, 0.5, 0.9, 0.3]),
    )
    params.update(overrides)
    return Realization(**params)


def test_cohort_validates_dimensions() -> None:
    with pytest.raises(ValueError):
        Cohort(genotypes=np.zeros((4, 3)), minor_allele_freqs=np.zeros(2), exposure=np.zeros(4))
    with pytest.raises(ValueError):
        Cohort(genotypes=np.zeros((4, 3)), minor_allele_freqs=np.zeros(3), exposure=np.zeros(5))


def test_cohort_copies_input() -> None:
    genotypes = np.zeros((2, 2), dtype=int)
    cohort = Cohort(genotypes=genotypes, minor_allele_freqs=np.array([0.1, 0.1]),
                    exposure=np.array([0, 1]))
    genotypes[0, 0] = 2

    assert cohort.genotypes[0, 0] == 0


def test_realization_linear_predictor() -> None:
    cohort = _cohort()
    r = _realization(cohort)

    X = cohort.genotypes.astype(float)
    e = cohort.exposure.astype(float)
    expected = 0.1 + X @ r.snp_coefs + 0.2 * e + (X * e[:, None]) @ r.interaction_coefs
    np.testing.assert_allclose(r.linear_predictor(), expected)
    np.testing.assert_allclose(r.linear_predictor(include_interaction=False),
                               0.1 + X @ r.snp_coefs + 0.2 * e)
    np.testing.assert_array_equal(r.truth_labels(), np.array([1, 0, 0]))


def test_realization_rejects_interaction_outside_active_set() -> None:
    cohort = _cohort()

    with pytest.raises(ValueError, match="subset"):
        _realization(cohort, interacting_snps=np.array([1]))
    with pytest.raises(ValueError, match="zero outside"):
        _realization(cohort, interaction_coefs=np.array([0.0, 1.0, 0.0]))


def test_realization_keeps_sampled_order() -> None:
    r = _realization(_cohort())

    np.testing.assert_array_equal(r.active_snps, np.array([2, 0]))


def test_trial_results_length_checks_and_family() -> None:
    with pytest.raises(ValueError):
        TrialResults(np.zeros(2), np.zeros(2), np.zeros(3), np.zeros(1), np.zeros(1), np.zeros(1))

    trials = TrialResults(
        lr_pvalues_interaction=np.array([0.01, 0.5]),
        lr_pvalues_no_interaction=np.array([0.2, 0.03]),
        lr_truth=np.array([1, 0]),
        lasso_coefs_interaction=np.array([0.4, 0.0, 0.0]),
        lasso_coefs_no_interaction=np.array([0.0, 0.1, 0.0]),
        lasso_truth=np.array([1, 0, 0]),
        n_realizations=1,
    )
    signals, truth = trials.family("LRT", "interaction")
    np.testing.assert_array_equal(signals, [0.01, 0.5])
    np.testing.assert_array_equal(truth, [1, 0])

    signals, truth = trials.family("Lasso", "no_interaction")
    np.testing.assert_array_equal(signals, [0.0, 0.1, 0.0])
    np.testing.assert_array_equal(truth, [0, 0, 0])

    with pytest.raises(ValueError):
        trials.family("GLM", "interaction")
    with pytest.raises(ValueError):
        trials.family("LRT", "other")
    assert np.isnan(trials.observed_prevalence["interaction"])


def test_contingency_counts_addition_and_summary() -> None:
    total = ContingencyCounts(1, 2, 3, 4) + ContingencyCounts(4, 3, 2, 1)

    assert total.as_tuple() == (5, 5, 5, 5)
    assert total.positives == 10 and total.negatives == 10
    assert summarize(total) == {"S": 5, "T": 5, "V": 5, "U": 5}


def test_detection_metrics_dict_order_and_nan_summary() -> None:
    metrics = DetectionMetrics(recall=float("nan"), specificity=0.9, accuracy=0.9,
                               precision=float("nan"), f_score=float("nan"), fpr=0.1)

    assert tuple(metrics.to_dict()) == METRIC_NAMES
    summary = summarize(metrics)
    assert summary["Recall"] is None
    assert summary["FPR"] == pytest.approx(0.1)
    assert metrics.to_series().index.tolist() == list(METRIC_NAMES)
