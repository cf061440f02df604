"""
Orbax persistence of Q-network parameters.

Layout of a model directory:
- params/       Orbax PyTree checkpoint {layer: {"kernel", "bias"}}
- schema.toml   vector schema the parameters were trained against

Hard requirement:
- A model trained under a different vector schema must never load silently.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Final, cast

import jax.numpy as jnp
import numpy as np
import orbax.checkpoint as ocp
from orbax.checkpoint import args as args_lib

from dqnchess.errors import PersistenceError
from dqnchess.model.q_network import LAYER_NAMES, QNetwork
from dqnchess.toml_io import TomlValue, load_toml, save_toml

PARAMS_DIR: Final[str] = "params"
SCHEMA_FILE: Final[str] = "schema.toml"
_LEAVES: Final[tuple[str, ...]] = ("kernel", "bias")

type ParamTree = dict[str, dict[str, np.ndarray]]


@dataclass(frozen=True, slots=True)
class ModelSchema:
    """Vector schema and network width a parameter file belongs to."""

    schema_version: int
    state_size: int
    action_size: int
    hidden_size: int

    def to_toml(self) -> dict[str, TomlValue]:
        """Serialize into a TOML table."""
        return {
            "schema_version": self.schema_version,
            "state_size": self.state_size,
            "action_size": self.action_size,
            "hidden_size": self.hidden_size,
        }

    @staticmethod
    def from_toml(data: dict[str, TomlValue]) -> ModelSchema:
        """Parse a schema table.

        Raises:
            PersistenceError: If a field is missing or not an int.
        """
        values: dict[str, int] = {}
        for key in (
            "schema_version",
            "state_size",
            "action_size",
            "hidden_size",
        ):
            value = data.get(key)
            if not isinstance(value, int) or isinstance(value, bool):
                raise PersistenceError(f"schema missing int key: {key}")
            values[key] = value
        return ModelSchema(**values)


def params_to_tree(model: QNetwork) -> ParamTree:
    """Copy every layer's kernel and bias to host numpy arrays."""
    tree: ParamTree = {}
    for name in LAYER_NAMES:
        layer = getattr(model, name)
        tree[name] = {
            "kernel": np.asarray(layer.kernel[...]),
            "bias": np.asarray(layer.bias[...]),
        }
    return tree


def assign_tree(model: QNetwork, tree: ParamTree) -> None:
    """Write a parameter tree into a model in place.

    Raises:
        PersistenceError: If a layer is missing or a shape differs.
    """
    # Validate everything before mutating any parameter.
    for name in LAYER_NAMES:
        layer_tree = tree.get(name)
        if not isinstance(layer_tree, dict):
            raise PersistenceError(f"checkpoint missing layer: {name}")
        layer = getattr(model, name)
        for leaf in _LEAVES:
            if leaf not in layer_tree:
                raise PersistenceError(f"checkpoint missing {name}.{leaf}")
            expected = tuple(getattr(layer, leaf)[...].shape)
            found = tuple(np.shape(layer_tree[leaf]))
            if found != expected:
                raise PersistenceError(
                    f"shape mismatch for {name}.{leaf}: "
                    f"checkpoint {found}, model {expected}"
                )
    for name in LAYER_NAMES:
        layer = getattr(model, name)
        for leaf in _LEAVES:
            getattr(layer, leaf).set_value(
                jnp.asarray(tree[name][leaf], dtype=jnp.float32)
            )


def save_model(path: Path, model: QNetwork, schema: ModelSchema) -> None:
    """Save parameters and schema under a model directory.

    Raises:
        PersistenceError: On any filesystem or Orbax failure.
    """
    # Orbax requires absolute paths.
    root = path.resolve()
    try:
        root.mkdir(parents=True, exist_ok=True)
        checkpointer = ocp.PyTreeCheckpointer()
        checkpointer.save(
            root / PARAMS_DIR,
            args=args_lib.PyTreeSave(params_to_tree(model)),
            force=True,
        )
        save_toml(root / SCHEMA_FILE, schema.to_toml())
    except (OSError, ValueError) as exc:
        raise PersistenceError(
            f"failed to save model to {root}: {exc}"
        ) from exc


def read_schema(path: Path) -> ModelSchema:
    """Read the schema file of a model directory.

    Raises:
        PersistenceError: If it is missing or malformed.
    """
    schema_path = path.resolve() / SCHEMA_FILE
    try:
        data = load_toml(schema_path)
    except (OSError, ValueError, tomllib.TOMLDecodeError) as exc:
        raise PersistenceError(f"cannot read {schema_path}: {exc}") from exc
    return ModelSchema.from_toml(data)


def load_model(path: Path, model: QNetwork, expected: ModelSchema) -> None:
    """Restore parameters from a model directory into model.

    Args:
        path: Model directory written by save_model.
        model: Network whose parameters are replaced.
        expected: Schema of the live codec and network.

    Raises:
        PersistenceError: On schema mismatch, shape mismatch or I/O failure.
    """
    schema = read_schema(path)
    if schema != expected:
        raise PersistenceError(
            f"model schema {schema} does not match current schema {expected}"
        )
    restore_args = {
        name: {
            leaf: ocp.RestoreArgs(restore_type=np.ndarray) for leaf in _LEAVES
        }
        for name in LAYER_NAMES
    }
    try:
        restored = ocp.PyTreeCheckpointer().restore(
            path.resolve() / PARAMS_DIR,
            args=args_lib.PyTreeRestore(restore_args=restore_args),
        )
    except (OSError, ValueError, KeyError) as exc:
        raise PersistenceError(
            f"failed to restore params from {path}: {exc}"
        ) from exc
    if not isinstance(restored, dict):
        raise PersistenceError("Restored checkpoint is not a mapping.")
    assign_tree(model, cast(ParamTree, restored))
