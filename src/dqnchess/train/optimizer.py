"""
Optax optimizer creation.
"""

from __future__ import annotations

from dataclasses import dataclass

import optax


@dataclass(frozen=True, slots=True)
class OptimConfig:
    """Optimizer hyperparameters."""

    learning_rate: float
    grad_clip_norm: float


def make_optimizer(cfg: OptimConfig) -> optax.GradientTransformation:
    """Create a clipped Adam optimizer."""
    return optax.chain(
        optax.clip_by_global_norm(cfg.grad_clip_norm),
        optax.adam(cfg.learning_rate),
    )
