import warnings

import pytest

from gxesim.utils.config import LassoSettings, SimulationConfig
from gxesim.utils.errors import ConfigurationError


def test_defaults_are_valid() -> None:
    config = SimulationConfig().validate()

    assert config.derived_counts() == (6, 3)
    assert config.to_dict()["lasso"]["n_folds"] == 10


@pytest.mark.parametrize("field,value", [
    ("n_individuals", 0),
    ("n_snps", -3),
    ("n_realizations", 2.5),
    ("n_snps", True),
    ("prevalence", 1.5),
    ("prev_snps", -0.1),
    ("prev_interactions", 1.01),
    ("alpha", 0.0),
    ("alpha", 1.0),
    ("on_fit_failure", "retry"),
    ("lr_maxiter", 0),
])
def test_out_of_range_values_raise(field: str, value) -> None:
    config = SimulationConfig(**{field: value})

    with pytest.raises(ConfigurationError) as excinfo:
        config.validate()

    assert excinfo.value.field == field


def test_lasso_settings_are_validated() -> None:
    with pytest.raises(ConfigurationError):
        SimulationConfig(n_individuals=5, lasso=LassoSettings(n_folds=10)).validate()
    with pytest.raises(ConfigurationError):
        SimulationConfig(lasso=LassoSettings(n_folds=1)).validate()
    with pytest.raises(ConfigurationError):
        SimulationConfig(lasso=LassoSettings(n_cs=0)).validate()
    with pytest.raises(ConfigurationError) as excinfo:
        SimulationConfig(lasso=LassoSettings(intercept_scaling=0.0)).validate()
    assert excinfo.value.field == "lasso.intercept_scaling"


def test_configuration_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        SimulationConfig(alpha=2.0).validate()


def test_no_active_snps_warns_but_validates() -> None:
    with pytest.warns(UserWarning, match="no active SNPs"):
        SimulationConfig(n_snps=3, prev_snps=0.2).validate()


def test_zero_interaction_prevalence_is_silent() -> None:
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        config = SimulationConfig(prev_interactions=0.0).validate()

    assert config.derived_counts() == (6, 0)
