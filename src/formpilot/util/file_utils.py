import json
import os
from pathlib import Path
from typing import Any, Dict, Union

import yaml


def from_json_or_yaml(filepath: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a dict from a JSON or YAML file, chosen by extension.

    Args:
    filepath (str | Path): path ending in .json, .yaml or .yml.

    Returns:
    config (dict): the parsed mapping (empty for an empty file).
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    suffix = path.suffix.lower()
    with open(path, "r", encoding="utf-8") as f:
        if suffix == ".json":
            data = json.load(f)
        elif suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(f)
        else:
            raise ValueError(f"Unsupported config format: {os.path.basename(path)}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return data
