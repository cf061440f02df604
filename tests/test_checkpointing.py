"""Tests for parameter tree conversion and schema parsing."""

from __future__ import annotations

import warnings

import numpy as np
import pytest
from flax import nnx

from dqnchess.errors import PersistenceError
from dqnchess.model.q_network import QNetwork, QNetworkConfig
from dqnchess.train.checkpointing import (
    ModelSchema,
    assign_tree,
    params_to_tree,
)


def _model(hidden: int, seed: int) -> QNetwork:
    """Build a small QNetwork."""
    cfg = QNetworkConfig(state_size=24, action_size=6, hidden_size=hidden)
    return QNetwork(cfg, rngs=nnx.Rngs(seed))


def test_tree_roundtrip_between_models() -> None:
    """params_to_tree/assign_tree copy weights between equal models."""
    source = _model(8, 0)
    target = _model(8, 1)
    assign_tree(target, params_to_tree(source))
    for name, leaves in params_to_tree(source).items():
        for leaf, value in leaves.items():
            np.testing.assert_array_equal(params_to_tree(target)[name][leaf], value)


def test_tree_copy_avoids_deprecated_value_access() -> None:
    """Reading and writing parameters raises no Variable.value warnings."""
    source = _model(8, 0)
    target = _model(8, 1)
    with warnings.catch_warnings():
        warnings.filterwarnings(
            "error", message=r".*\.value.*", category=DeprecationWarning
        )
        assign_tree(target, params_to_tree(source))
        tree = params_to_tree(target)
    np.testing.assert_array_equal(
        tree["head"]["bias"], params_to_tree(source)["head"]["bias"]
    )


def test_assign_tree_shape_mismatch_leaves_model_untouched() -> None:
    """A mismatched tree raises before any parameter changes."""
    target = _model(8, 0)
    before = params_to_tree(target)
    tree = params_to_tree(_model(8, 1))
    tree["head"]["kernel"] = np.zeros((16, 1), dtype=np.float32)
    with pytest.raises(PersistenceError):
        assign_tree(target, tree)
    np.testing.assert_array_equal(
        params_to_tree(target)["fc1"]["kernel"], before["fc1"]["kernel"]
    )


def test_assign_tree_missing_layer() -> None:
    """A tree without a layer raises PersistenceError."""
    tree = params_to_tree(_model(8, 0))
    del tree["fc2"]
    with pytest.raises(PersistenceError):
        assign_tree(_model(8, 0), tree)


def test_schema_toml_roundtrip_and_validation() -> None:
    """ModelSchema serializes to TOML and rejects missing keys."""
    schema = ModelSchema(schema_version=1, state_size=24, action_size=6, hidden_size=64)
    assert ModelSchema.from_toml(schema.to_toml()) == schema
    with pytest.raises(PersistenceError):
        ModelSchema.from_toml({"schema_version": 1, "state_size": 24})
    with pytest.raises(PersistenceError):
        ModelSchema.from_toml({**schema.to_toml(), "hidden_size": True})
