"""Q-network parameters, Adam moments and update counter as one pytree."""

from __future__ import annotations

from dataclasses import dataclass

import jax
import optax
from flax import nnx

from dqnchess.types import Step


@jax.tree_util.register_pytree_node_class
@dataclass(frozen=True, slots=True)
class TrainState:
    """Snapshot of the learner between optimization steps.

    DqnLearner replaces the whole snapshot after each update; nothing
    mutates it in place.
    """

    step: Step
    params: nnx.State
    opt_state: optax.OptState

    def tree_flatten(
        self,
    ) -> tuple[tuple[nnx.State, optax.OptState], int]:
        """Expose params and optimizer state as leaves; the counter is static."""
        return (self.params, self.opt_state), int(self.step)

    @classmethod
    def tree_unflatten(
        cls,
        aux_data: int,
        children: tuple[nnx.State, optax.OptState],
    ) -> TrainState:
        """Rebuild a snapshot from leaves and the static update counter.

        Raises:
            TypeError: If the counter is not an int.
        """
        if not isinstance(aux_data, int):
            raise TypeError(f"update counter must be int, got {aux_data!r}")
        params, opt_state = children
        return cls(step=Step(aux_data), params=params, opt_state=opt_state)
