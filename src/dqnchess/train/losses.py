"""
Loss functions for Q-value regression.
"""

from __future__ import annotations

from dataclasses import dataclass

import jax
import jax.numpy as jnp

from dqnchess.types import Array


@dataclass(frozen=True, slots=True)
class LossConfig:
    """Regularization strength."""

    weight_decay: float


@jax.tree_util.register_pytree_node_class
@dataclass(frozen=True, slots=True)
class Losses:
    """Computed losses."""

    total: Array
    td: Array
    l2: Array

    def tree_flatten(self) -> tuple[tuple[Array, ...], None]:
        """Flatten Losses for JAX pytree registration."""
        return (self.total, self.td, self.l2), None

    @classmethod
    def tree_unflatten(
        cls, aux_data: None, children: tuple[Array, ...]
    ) -> Losses:
        """Reconstruct Losses from pytree children."""
        del aux_data
        total, td, l2 = children
        return cls(total=total, td=td, l2=l2)


def compute_losses(
    *,
    q_pred: Array,
    targets: Array,
    params_l2: Array,
    cfg: LossConfig,
) -> Losses:
    """Compute mean squared TD error plus L2.

    Args:
        q_pred: (B,) predicted Q-values.
        targets: (B,) bootstrapped TD targets.
        params_l2: scalar sum of squared parameters.
        cfg: LossConfig

    Returns:
        Losses struct.
    """
    td = jnp.mean(jnp.square(q_pred - targets))
    l2 = cfg.weight_decay * params_l2
    return Losses(total=td + l2, td=td, l2=l2)
