"""
State-action value network.

Input:
- state: (B, state_size), already scaled to roughly [0, 1]
- action: (B, action_size), already scaled to [0, 1]

Output:
- q: (B,) estimated return of taking action in state
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

import jax
import jax.numpy as jnp
from flax import nnx

from dqnchess.types import Array

# Layers in forward order; also the persisted parameter tree keys.
LAYER_NAMES: Final[tuple[str, ...]] = ("fc1", "fc2", "head")


@dataclass(frozen=True, slots=True)
class QNetworkConfig:
    """Network dimensions."""

    state_size: int
    action_size: int
    hidden_size: int


class QNetwork(nnx.Module):
    """Two hidden-layer MLP over the concatenated state and action."""

    def __init__(self, cfg: QNetworkConfig, *, rngs: nnx.Rngs) -> None:
        """Initialize the dense layers.

        Args:
            cfg: QNetworkConfig with dimensions.
            rngs: NNX RNGs used for parameter init.
        """
        self.cfg = cfg
        self.fc1 = nnx.Linear(
            cfg.state_size + cfg.action_size, cfg.hidden_size, rngs=rngs
        )
        self.fc2 = nnx.Linear(cfg.hidden_size, cfg.hidden_size, rngs=rngs)
        self.head = nnx.Linear(cfg.hidden_size, 1, rngs=rngs)

    def __call__(self, states: Array, actions: Array) -> Array:
        """Score a batch of (state, action) pairs.

        Args:
            states: (B, state_size)
            actions: (B, action_size)

        Returns:
            (B,) Q-values.
        """
        x = jnp.concatenate([states, actions], axis=-1)
        x = jax.nn.relu(self.fc1(x))
        x = jax.nn.relu(self.fc2(x))
        return self.head(x).squeeze(-1)
