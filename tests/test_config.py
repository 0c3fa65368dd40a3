import pytest

from cadkernel.config import (
    ENV_ARC_DIVISIONS,
    ENV_CSG_EPSILON,
    ENV_REFLECTION_THRESHOLD,
    ENV_SWEEP_SAMPLES,
    ENV_SWEEP_STEPS,
    KernelDefaults,
    load_kernel_defaults,
)

_ALL_ENV = (ENV_CSG_EPSILON, ENV_REFLECTION_THRESHOLD, ENV_SWEEP_STEPS,
            ENV_SWEEP_SAMPLES, ENV_ARC_DIVISIONS)


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ALL_ENV:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults_without_environment(clean_env):
    defaults = load_kernel_defaults()
    assert defaults == KernelDefaults(
        csg_epsilon=1e-5,
        reflection_threshold=1e-12,
        sweep_steps=100,
        sweep_samples=64,
        arc_length_divisions=200,
    )


def test_environment_overrides(clean_env):
    clean_env.setenv(ENV_CSG_EPSILON, "1e-6")
    clean_env.setenv(ENV_SWEEP_STEPS, " 40 ")
    clean_env.setenv(ENV_SWEEP_SAMPLES, "12")
    defaults = load_kernel_defaults()
    assert defaults.csg_epsilon == pytest.approx(1e-6)
    assert defaults.sweep_steps == 40
    assert defaults.sweep_samples == 12


@pytest.mark.parametrize("env_name,raw,field,expected", [
    (ENV_CSG_EPSILON, "garbage", "csg_epsilon", 1e-5),
    (ENV_CSG_EPSILON, "-1", "csg_epsilon", 1e-5),
    (ENV_CSG_EPSILON, "nan", "csg_epsilon", 1e-5),
    (ENV_CSG_EPSILON, "0.5", "csg_epsilon", 1e-5),
    (ENV_REFLECTION_THRESHOLD, "0", "reflection_threshold", 1e-12),
    (ENV_SWEEP_STEPS, "0", "sweep_steps", 100),
    (ENV_SWEEP_STEPS, "2.5", "sweep_steps", 100),
    (ENV_SWEEP_SAMPLES, "2", "sweep_samples", 64),
    (ENV_ARC_DIVISIONS, "1000000", "arc_length_divisions", 200),
])
def test_invalid_values_fall_back(clean_env, env_name, raw, field, expected):
    clean_env.setenv(env_name, raw)
    assert getattr(load_kernel_defaults(), field) == expected


def test_defaults_are_frozen(clean_env):
    defaults = load_kernel_defaults()
    with pytest.raises(Exception):
        defaults.sweep_steps = 5
