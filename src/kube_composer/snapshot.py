"""Reading and writing working-set state files."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .types import SnapshotError
from .workspace import Workspace

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


def _is_yaml(path: Path) -> bool:
    return path.suffix.lower() in YAML_SUFFIXES


def load_state(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read the raw saved form of a working set.

    Files ending in ``.yaml``/``.yml`` are read with PyYAML, anything else as JSON.

    Raises:
        SnapshotError: If the file is missing, unparseable or not a mapping
    """
    path = Path(path).expanduser()
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) if _is_yaml(path) else json.load(f)
    except FileNotFoundError as e:
        raise SnapshotError(f"State file not found: {path}") from e
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise SnapshotError(f"Failed to read state file {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SnapshotError(f"State file {path} does not contain a mapping")
    return data


def load_workspace(path: Union[str, Path]) -> Workspace:
    """Load a state file into a :class:`Workspace`."""
    data = load_state(path)
    try:
        workspace = Workspace.from_dict(data)
    except (TypeError, ValueError) as e:
        raise SnapshotError(f"Malformed state file {path}: {e}") from e
    logger.debug("Loaded working set from %s", path)
    return workspace


def save_workspace(workspace: Workspace, path: Union[str, Path], force: bool = True) -> Path:
    """
    Write a working set to ``path`` as JSON or YAML, chosen by suffix.

    Args:
        workspace: Working set to save
        path: Destination file
        force: Overwrite an existing file

    Returns:
        The resolved destination path
    """
    path = Path(path).expanduser()
    if path.exists() and not force:
        raise SnapshotError(f"State file already exists: {path} (use --force to overwrite)")

    data = workspace.to_dict()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            if _is_yaml(path):
                yaml.safe_dump(data, f, sort_keys=False, default_flow_style=False)
            else:
                json.dump(data, f, indent=2)
                f.write("\n")
    except OSError as e:
        raise SnapshotError(f"Failed to write state file {path}: {e}") from e

    logger.info("Saved working set to %s", path)
    return path
