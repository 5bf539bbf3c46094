"""YAML configuration loading for kindscope.

Uses ``yaml.safe_load`` so a configuration file can only produce plain data
(strings, numbers, lists, dicts), never Python objects. Schema validation is
left to the Pydantic model the result is passed to, e.g.
[ExplorerConfig][kindscope.explorer.configs.ExplorerConfig].

Examples:
    ```python
    from kindscope.core.yaml import load_yaml

    config = load_yaml("config/kindscope.yaml")
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_yaml(config_path: str | Path) -> dict[str, Any]:
    """Load and parse a YAML configuration file.

    Args:
        config_path: Path to the YAML file (absolute or relative).

    Returns:
        Parsed configuration as a dictionary. An empty file yields ``{}``.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file contains invalid YAML syntax.
        TypeError: If the top-level YAML value is not a mapping.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise TypeError(f"Config file must contain a mapping, got {type(data).__name__}")
    return data
