"""
Deep Q-learning over encoded (state, action) vectors.

Design:
- one QNetwork scores a state against each candidate action
- TD(0) targets are computed when a transition arrives and stored in a
  replay buffer; each update then fits a sampled batch
- `_train_step` is jitted; params flow functionally through TrainState
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import jax
import jax.numpy as jnp
import numpy as np
import optax
from flax import nnx

from dqnchess.codec import action as action_codec
from dqnchess.codec import state as state_codec
from dqnchess.model.q_network import QNetwork, QNetworkConfig
from dqnchess.rng import RngStream
from dqnchess.selfplay.buffer import ReplayBuffer, ReplayConfig
from dqnchess.train.checkpointing import ModelSchema, load_model, save_model
from dqnchess.train.losses import LossConfig, Losses, compute_losses
from dqnchess.train.optimizer import OptimConfig, make_optimizer
from dqnchess.train.state import TrainState
from dqnchess.types import Array, Step, Vector

_MIN_BUCKET = 32


@dataclass(frozen=True, slots=True)
class LearnerConfig:
    """DQN hyperparameters.

    Attributes:
        gamma: Discount factor.
        learning_rate: Adam step size.
        hidden_size: Width of both hidden layers.
        batch_size: Samples per optimization step.
        replay_capacity: Replay buffer size.
        min_replay_to_train: Samples required before the first step.
        grad_clip_norm: Global gradient norm clip.
        weight_decay: L2 coefficient.
        seed: Seed for parameter init and replay sampling.
    """

    gamma: float = 0.9
    learning_rate: float = 1e-3
    hidden_size: int = 64
    batch_size: int = 32
    replay_capacity: int = 10_000
    min_replay_to_train: int = 32
    grad_clip_norm: float = 1.0
    weight_decay: float = 0.0
    seed: int = 0


def _params_l2(params: nnx.State) -> Array:
    """Compute the sum of squared parameter leaves."""
    leaves = jax.tree_util.tree_leaves(params)
    terms = [jnp.sum(jnp.square(x)) for x in leaves if isinstance(x, jax.Array)]
    if not terms:
        return jnp.array(0.0, dtype=jnp.float32)
    return jnp.sum(jnp.stack(terms))


class DqnLearner:
    """Q-network learner implementing the Learner protocol."""

    def __init__(
        self,
        cfg: LearnerConfig,
        state_size: int = state_codec.STATE_SIZE,
        action_size: int = action_codec.ACTION_SIZE,
    ) -> None:
        """Build the network, optimizer and replay buffer.

        Args:
            cfg: LearnerConfig.
            state_size: Length of encoded state vectors.
            action_size: Length of encoded action vectors.
        """
        self.cfg = cfg
        self.schema = ModelSchema(
            schema_version=state_codec.STATE_SCHEMA_VERSION,
            state_size=state_size,
            action_size=action_size,
            hidden_size=cfg.hidden_size,
        )
        self._state_scale = state_codec.feature_scale()
        self._action_scale = action_codec.feature_scale()
        if self._state_scale.shape != (state_size,):
            self._state_scale = np.ones((state_size,), dtype=np.float64)
        if self._action_scale.shape != (action_size,):
            self._action_scale = np.ones((action_size,), dtype=np.float64)

        model = QNetwork(
            QNetworkConfig(
                state_size=state_size,
                action_size=action_size,
                hidden_size=cfg.hidden_size,
            ),
            rngs=nnx.Rngs(cfg.seed),
        )
        self._graphdef, params = nnx.split(model)
        self._tx = make_optimizer(
            OptimConfig(
                learning_rate=cfg.learning_rate,
                grad_clip_norm=cfg.grad_clip_norm,
            )
        )
        self._train_state = TrainState(
            step=Step(0), params=params, opt_state=self._tx.init(params)
        )
        self._loss_cfg = LossConfig(weight_decay=cfg.weight_decay)
        self._replay = ReplayBuffer(
            ReplayConfig(
                capacity=cfg.replay_capacity,
                min_to_sample=cfg.min_replay_to_train,
            )
        )
        self._rng = RngStream.from_seed(cfg.seed)
        self._q_fn = jax.jit(self._apply)
        self._train_fn = jax.jit(self._train_step)

    @property
    def step(self) -> Step:
        """Number of optimization steps taken."""
        return self._train_state.step

    @property
    def replay_size(self) -> int:
        """Number of samples held in the replay buffer."""
        return len(self._replay)

    def _apply(self, params: nnx.State, states: Array, actions: Array) -> Array:
        """Run the network functionally."""
        model = nnx.merge(self._graphdef, params)
        return model(states, actions)

    def _train_step(
        self,
        params: nnx.State,
        opt_state: optax.OptState,
        batch: dict[str, Array],
    ) -> tuple[nnx.State, optax.OptState, Losses]:
        """One optimization step on a sampled batch."""

        def loss_fn(p: nnx.State) -> tuple[Array, Losses]:
            q_pred = self._apply(p, batch["states"], batch["actions"])
            losses = compute_losses(
                q_pred=q_pred,
                targets=batch["targets"],
                params_l2=_params_l2(p),
                cfg=self._loss_cfg,
            )
            return losses.total, losses

        (_, losses), grads = jax.value_and_grad(loss_fn, has_aux=True)(params)
        updates, opt_state = self._tx.update(grads, opt_state, params)
        params = optax.apply_updates(params, updates)
        return params, opt_state, losses

    def _scale_states(self, states: np.ndarray) -> np.ndarray:
        # Scaling happens in float64 so large mask halves stay exact until here.
        scaled = np.asarray(states, dtype=np.float64) / self._state_scale
        return scaled.astype(np.float32)

    def _scale_actions(self, actions: np.ndarray) -> np.ndarray:
        scaled = np.asarray(actions, dtype=np.float64) / self._action_scale
        return scaled.astype(np.float32)

    def q_values(self, state: Vector, actions: list[Vector]) -> np.ndarray:
        """Estimate Q(state, a) for every candidate action.

        Returns:
            (len(actions),) float array; empty for no candidates.
        """
        count = len(actions)
        if count == 0:
            return np.zeros((0,), dtype=np.float32)
        # Pad to a power-of-two bucket so jit compiles a handful of shapes.
        padded = max(_MIN_BUCKET, 1 << (count - 1).bit_length())
        action_batch = np.zeros(
            (padded, self.schema.action_size), dtype=np.float32
        )
        action_batch[:count] = self._scale_actions(np.stack(actions))
        state_batch = np.repeat(
            self._scale_states(np.asarray(state)[None, :]), padded, axis=0
        )
        q = self._q_fn(
            self._train_state.params,
            jnp.asarray(state_batch),
            jnp.asarray(action_batch),
        )
        return np.asarray(jax.device_get(q))[:count]

    def best_action(
        self, state: Vector, actions: list[Vector]
    ) -> Vector | None:
        """Return the candidate with the highest Q-value, or None if empty."""
        if not actions:
            return None
        return actions[int(np.argmax(self.q_values(state, actions)))]

    def update(
        self,
        state: Vector,
        action: Vector,
        reward: float,
        next_state: Vector,
        next_actions: list[Vector] | None = None,
    ) -> float | None:
        """Store a transition and run one optimization step when possible.

        The target is reward + gamma * max_a' Q(next_state, a'), or just the
        reward when next_actions is empty (terminal transition).

        Returns:
            Total loss of the step, or None while the buffer is warming up.
        """
        target = float(reward)
        if next_actions:
            target += self.cfg.gamma * float(
                np.max(self.q_values(next_state, next_actions))
            )
        self._replay.add(
            self._scale_states(np.asarray(state)[None, :]),
            self._scale_actions(np.asarray(action)[None, :]),
            np.asarray([target], dtype=np.float32),
        )
        if not self._replay.can_sample():
            return None

        sample_key = self._rng.key_for_update(self._train_state.step)
        batch = self._replay.sample_batch(sample_key, self.cfg.batch_size)
        batch_jnp = {key: jnp.asarray(value) for key, value in batch.items()}
        params, opt_state, losses = self._train_fn(
            self._train_state.params, self._train_state.opt_state, batch_jnp
        )
        self._train_state = TrainState(
            step=Step(int(self._train_state.step) + 1),
            params=params,
            opt_state=opt_state,
        )
        return float(jax.device_get(losses.total))

    def save(self, path: Path) -> None:
        """Persist parameters and schema to a model directory.

        Raises:
            PersistenceError: On I/O failure.
        """
        model = nnx.merge(self._graphdef, self._train_state.params)
        save_model(path, model, self.schema)

    def load(self, path: Path) -> None:
        """Replace parameters from a model directory; optimizer state resets.

        Raises:
            PersistenceError: On schema mismatch or I/O failure.
        """
        model = nnx.merge(self._graphdef, self._train_state.params)
        load_model(path, model, self.schema)
        _, params = nnx.split(model)
        self._train_state = TrainState(
            step=self._train_state.step,
            params=params,
            opt_state=self._tx.init(params),
        )
