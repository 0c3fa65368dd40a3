"""
Kernel tuning defaults.

Values can be overridden via environment variables so callers can trade
accuracy for speed without threading parameters through every entrypoint.
"""

from __future__ import annotations

from dataclasses import dataclass
import os


ENV_CSG_EPSILON = "CADKERNEL_CSG_EPSILON"
ENV_REFLECTION_THRESHOLD = "CADKERNEL_REFLECTION_THRESHOLD"
ENV_SWEEP_STEPS = "CADKERNEL_SWEEP_STEPS"
ENV_SWEEP_SAMPLES = "CADKERNEL_SWEEP_SAMPLES"
ENV_ARC_DIVISIONS = "CADKERNEL_ARC_DIVISIONS"


@dataclass(frozen=True)
class KernelDefaults:
    csg_epsilon: float
    reflection_threshold: float
    sweep_steps: int
    sweep_samples: int
    arc_length_divisions: int


def _read_int_env(
    env_name: str,
    default: int,
    *,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    raw = os.environ.get(env_name)
    if raw is None:
        return default
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default

    if min_value is not None and value < min_value:
        return default
    if max_value is not None and value > max_value:
        return default
    return value


def _read_float_env(
    env_name: str,
    default: float,
    *,
    max_value: float | None = None,
) -> float:
    """Read a strictly positive float, falling back to ``default``."""
    raw = os.environ.get(env_name)
    if raw is None:
        return default
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        return default

    # rejects nan as well
    if not value > 0.0:
        return default
    if max_value is not None and value > max_value:
        return default
    return value


def load_kernel_defaults() -> KernelDefaults:
    return KernelDefaults(
        csg_epsilon=_read_float_env(ENV_CSG_EPSILON, 1e-5, max_value=1e-2),
        reflection_threshold=_read_float_env(ENV_REFLECTION_THRESHOLD, 1e-12, max_value=1e-3),
        sweep_steps=_read_int_env(ENV_SWEEP_STEPS, 100, min_value=1, max_value=10000),
        sweep_samples=_read_int_env(ENV_SWEEP_SAMPLES, 64, min_value=3, max_value=4096),
        arc_length_divisions=_read_int_env(ENV_ARC_DIVISIONS, 200, min_value=8, max_value=100000),
    )


DEFAULTS = load_kernel_defaults()
