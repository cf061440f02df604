"""Tests for loss computation utilities."""

from __future__ import annotations

import chex
import jax.numpy as jnp

from dqnchess.train.losses import LossConfig, compute_losses


def test_compute_losses_values() -> None:
    """compute_losses combines squared TD error and weighted L2."""
    # Build a tiny deterministic batch.
    q_pred = jnp.array([0.5, -0.5], dtype=jnp.float32)
    targets = jnp.array([1.0, -1.0], dtype=jnp.float32)
    params_l2 = jnp.array(2.0, dtype=jnp.float32)
    cfg = LossConfig(weight_decay=0.1)

    losses = compute_losses(
        q_pred=q_pred, targets=targets, params_l2=params_l2, cfg=cfg
    )

    # Expected values from hand calculation.
    expected_td = jnp.array(0.25)
    expected_l2 = jnp.array(0.2)
    chex.assert_trees_all_close(losses.td, expected_td, rtol=1e-6, atol=1e-6)
    chex.assert_trees_all_close(losses.l2, expected_l2, rtol=1e-6, atol=1e-6)
    chex.assert_trees_all_close(
        losses.total, expected_td + expected_l2, rtol=1e-6, atol=1e-6
    )


def test_compute_losses_zero_when_exact() -> None:
    """Perfect predictions without decay give zero loss."""
    values = jnp.array([0.3, 0.7, -1.0], dtype=jnp.float32)
    losses = compute_losses(
        q_pred=values,
        targets=values,
        params_l2=jnp.array(5.0, dtype=jnp.float32),
        cfg=LossConfig(weight_decay=0.0),
    )
    chex.assert_trees_all_close(losses.total, jnp.array(0.0), atol=1e-7)
