"""
Model Checkpoints
=================

Saves and restores Networks (and agents) built on the state export of
Network.get_state().

Formats:
    json - human-readable, one document with topology, weights and
           hyperparameters
    npz  - numpy archive; one weight matrix and one bias vector per layer,
           plus a JSON header with topology and hyperparameters

The format is picked from the file extension unless given explicitly:
'.json' loads/saves JSON, anything else uses npz.

Usage:
    save_network(net, 'models/xor.json')
    net = load_network('models/xor.json')
"""

import json
import os
import shutil
import zipfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np

from .network import Network
from ..exceptions import CheckpointError, DimensionError
from ..utils.logger import log_model_event


FORMAT_VERSION = 1
FORMATS = ('json', 'npz')

PathLike = Union[str, os.PathLike]


@dataclass
class ModelMetadata:
    """File-level information about a saved model."""
    filepath: str
    size_bytes: int
    last_modified: float

    @property
    def size_formatted(self) -> str:
        if self.size_bytes < 1024:
            return f"{self.size_bytes}B"
        if self.size_bytes < 1024 * 1024:
            return f"{self.size_bytes // 1024}KB"
        return f"{self.size_bytes // (1024 * 1024)}MB"

    def __str__(self) -> str:
        modified = datetime.fromtimestamp(self.last_modified).strftime('%Y-%m-%d %H:%M:%S')
        return f"Model: {self.filepath}, Size: {self.size_formatted}, Modified: {modified}"


def resolve_format(filepath: PathLike, fmt: Optional[str] = None) -> str:
    """Explicit format if given, otherwise inferred from the extension."""
    if fmt is not None:
        fmt = fmt.lower()
        if fmt not in FORMATS:
            raise ValueError(f"Unknown format: {fmt!r} (expected one of {FORMATS})")
        return fmt
    return 'json' if str(filepath).lower().endswith('.json') else 'npz'


def save_network(network: Network, filepath: PathLike, fmt: Optional[str] = None) -> Path:
    """
    Write a network to disk, creating parent directories.

    Args:
        network: Network to save
        filepath: Destination path
        fmt: 'json' or 'npz' (default: from extension)

    Returns:
        Path that was written
    """
    path = Path(filepath)
    fmt = resolve_format(path, fmt)
    path.parent.mkdir(parents=True, exist_ok=True)

    state = network.get_state()
    if fmt == 'json':
        document = {'format': 'tinydqn-network', 'version': FORMAT_VERSION, **state}
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(document, f)
    else:
        _save_npz(state, path)

    log_model_event('save', str(path), format=fmt, layers=network.layer_count)
    return path


def load_network(
    filepath: PathLike,
    fmt: Optional[str] = None,
    rng: Optional[np.random.Generator] = None
) -> Network:
    """
    Read a network written by save_network.

    Raises:
        FileNotFoundError: If the file does not exist
        CheckpointError: If the file is not a valid network checkpoint
    """
    path = Path(filepath)
    fmt = resolve_format(path, fmt)
    if not path.exists():
        raise FileNotFoundError(f"Model not found: {path}")

    if fmt == 'json':
        state = _read_json(path)
    else:
        state = _load_npz(path)

    network = network_from_state(state, rng)
    log_model_event('load', str(path), format=fmt, layers=network.layer_count)
    return network


def network_from_state(state: Dict[str, Any], rng: Optional[np.random.Generator] = None) -> Network:
    """Network.from_state with malformed documents reported as CheckpointError."""
    try:
        return Network.from_state(state, rng)
    except DimensionError as e:
        raise CheckpointError(f"Checkpoint parameters are inconsistent: {e}") from e
    except (KeyError, TypeError, ValueError) as e:
        raise CheckpointError(f"Not a network checkpoint: {e!r}") from e


def save_agent(agent, filepath: PathLike) -> Path:
    """Write an agent's networks and exploration state as JSON."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)

    document = {'format': 'tinydqn-agent', 'version': FORMAT_VERSION, **agent.get_state()}
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(document, f)

    log_model_event('save', str(path), format='json', steps=agent.step_count,
                    epsilon=f"{agent.epsilon:.4f}")
    return path


def load_agent(agent, filepath: PathLike) -> None:
    """Restore a state written by save_agent into an existing agent."""
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Model not found: {path}")

    document = _read_json(path)
    if document.get('format') != 'tinydqn-agent':
        raise CheckpointError(f"Not an agent checkpoint: {path}")
    try:
        agent.load_state(document)
    except DimensionError as e:
        raise CheckpointError(f"Checkpoint does not fit this agent: {e}") from e
    except (KeyError, TypeError, ValueError) as e:
        raise CheckpointError(f"Malformed agent checkpoint: {e!r}") from e

    log_model_event('load', str(path), format='json', steps=agent.step_count,
                    epsilon=f"{agent.epsilon:.4f}")


def copy_checkpoint(source: PathLike, destination: PathLike) -> Path:
    """Copy a saved model file, replacing any existing destination."""
    dest = Path(destination)
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, dest)
    log_model_event('copy', str(dest), source=str(source))
    return dest


def get_metadata(filepath: PathLike) -> ModelMetadata:
    """Size and modification time of a saved model."""
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Model not found: {path}")
    stat = path.stat()
    return ModelMetadata(str(path), stat.st_size, stat.st_mtime)


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            document = json.load(f)
    except json.JSONDecodeError as e:
        raise CheckpointError(f"Invalid JSON model {path}: {e}") from e
    if not isinstance(document, dict):
        raise CheckpointError(f"Invalid JSON model {path}: expected an object")
    return document


def _save_npz(state: Dict[str, Any], path: Path) -> None:
    header = {key: value for key, value in state.items() if key != 'layers'}
    header['version'] = FORMAT_VERSION
    header['layers'] = [
        {k: layer[k] for k in ('input_size', 'neuron_count', 'activation')}
        for layer in state['layers']
    ]

    arrays: Dict[str, np.ndarray] = {'header': np.array(json.dumps(header))}
    for i, layer in enumerate(state['layers']):
        arrays[f'weights_{i}'] = np.asarray(layer['weights'], dtype=np.float64)
        arrays[f'biases_{i}'] = np.asarray(layer['biases'], dtype=np.float64)

    # np.savez appends '.npz' to bare names; write through a handle to keep the path
    with open(path, 'wb') as f:
        np.savez(f, **arrays)


def _load_npz(path: Path) -> Dict[str, Any]:
    try:
        with np.load(path, allow_pickle=False) as archive:
            header = json.loads(archive['header'].item())
            for i, layer in enumerate(header['layers']):
                layer['weights'] = archive[f'weights_{i}'].tolist()
                layer['biases'] = archive[f'biases_{i}'].tolist()
    except (OSError, ValueError, KeyError, zipfile.BadZipFile) as e:
        raise CheckpointError(f"Invalid npz model {path}: {e}") from e
    return header
