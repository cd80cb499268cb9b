#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markweave/config.py
"""Configuration file discovery and loading.

Options can be stored in ``.markweave.toml``, ``.markweave.yaml`` /
``.markweave.yml``, ``.markweave.json`` or the ``[tool.markweave]`` table of a
``pyproject.toml``. Keys are :class:`~markweave.options.MarkdownOptions` field
names:

.. code-block:: toml

    [tool.markweave]
    gfm = true
    breaks = true
    max_nesting_depth = 64

"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found,unused-ignore]

import yaml

from markweave.constants import CONFIG_ENV_VAR, CONFIG_FILENAMES
from markweave.exceptions import ConfigurationError
from markweave.options import MarkdownOptions, option_names

logger = logging.getLogger(__name__)

# Options that name Python classes cannot come from a data file.
_CLASS_OPTIONS = frozenset({"renderer_class", "tokenizer_class", "hooks_class"})


def _load_pyproject_section(pyproject_path: Path) -> Dict[str, Any]:
    """Load the [tool.markweave] section from a pyproject.toml file.

    Returns
    -------
    dict
        The section, or an empty dict when the file has none

    Raises
    ------
    ConfigurationError
        If the file cannot be parsed or the section is not a table

    """
    try:
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in pyproject.toml {pyproject_path}: {e}", original_error=e) from e
    except OSError as e:
        raise ConfigurationError(f"Error reading pyproject.toml {pyproject_path}: {e}", original_error=e) from e

    section = data.get("tool", {}).get("markweave")
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigurationError(
            f"[tool.markweave] section in {pyproject_path} must be a table, got {type(section).__name__}"
        )
    return section


def discover_config_file(start_dir: Optional[Path | str] = None) -> Optional[Path]:
    """Find a configuration file by searching ``start_dir`` and its parents.

    Each directory is checked for ``.markweave.toml``, ``.markweave.yaml``,
    ``.markweave.yml`` and ``.markweave.json``, then for a ``pyproject.toml``
    that has a ``[tool.markweave]`` table. The first hit wins.

    Parameters
    ----------
    start_dir : Path or str, optional
        Directory to start from, defaults to the current working directory

    Returns
    -------
    Path or None
        Path of the configuration file, or None if there is none

    """
    current = Path(start_dir or Path.cwd()).resolve()

    while True:
        for filename in CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.is_file():
                return config_path

        pyproject_path = current / "pyproject.toml"
        if pyproject_path.is_file():
            try:
                if _load_pyproject_section(pyproject_path):
                    return pyproject_path
            except ConfigurationError:
                # An unreadable pyproject.toml does not stop the search.
                logger.debug("Ignoring unreadable %s", pyproject_path)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_config_file(config_path: Path | str) -> Dict[str, Any]:
    """Load configuration from a JSON, TOML, YAML or pyproject.toml file.

    Parameters
    ----------
    config_path : Path or str
        Path to the configuration file

    Returns
    -------
    dict
        Configuration dictionary

    Raises
    ------
    ConfigurationError
        If the file is missing, unreadable, malformed, or has an unsupported
        extension

    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file does not exist: {config_path}")
    if not config_path.is_file():
        raise ConfigurationError(f"Configuration path is not a file: {config_path}")

    ext = config_path.suffix.lower()
    if config_path.name.lower() == "pyproject.toml":
        return _load_pyproject_section(config_path)

    try:
        if ext == ".toml":
            with open(config_path, "rb") as f:
                config = tomllib.load(f)
        elif ext in (".yaml", ".yml"):
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        elif ext == ".json":
            with open(config_path, "r", encoding="utf-8") as f:
                config = json.load(f)
        else:
            raise ConfigurationError(f"Unsupported config file format: {ext}. Use .json, .toml, or .yaml")
    except ConfigurationError:
        raise
    except (tomllib.TOMLDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Invalid config file {config_path}: {e}", original_error=e) from e
    except OSError as e:
        raise ConfigurationError(f"Error reading config file {config_path}: {e}", original_error=e) from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a mapping at the top level, got {type(config).__name__}"
        )

    logger.debug("Loaded configuration from %s", config_path)
    return config


def options_from_config(config: Mapping[str, Any], base: Optional[MarkdownOptions] = None) -> MarkdownOptions:
    """Build options from a configuration mapping.

    Parameters
    ----------
    config : mapping
        Option names and values
    base : MarkdownOptions, optional
        Options to update, defaults to ``MarkdownOptions()``

    Returns
    -------
    MarkdownOptions
        Updated options

    Raises
    ------
    ConfigurationError
        If a key is not an option name or a value has the wrong type

    """
    allowed = set(option_names()) - _CLASS_OPTIONS
    unknown = sorted(set(config) - allowed)
    if unknown:
        raise ConfigurationError(
            f"Unknown configuration key(s): {', '.join(unknown)}",
            parameter_name=unknown[0],
            parameter_value=config[unknown[0]],
        )

    base = base or MarkdownOptions()
    if not config:
        return base
    return base.create_updated(**dict(config))


def load_config_with_priority(
    explicit_path: Optional[str] = None,
    env_var_path: Optional[str] = None,
) -> Dict[str, Any]:
    """Load configuration with priority handling.

    Priority order (highest to lowest):

    1. Explicit config file path (``--config``)
    2. Path from the ``MARKWEAVE_CONFIG`` environment variable
    3. Auto-discovered config file

    Parameters
    ----------
    explicit_path : str, optional
        Path given on the command line
    env_var_path : str, optional
        Path from the environment; read from ``MARKWEAVE_CONFIG`` when omitted

    Returns
    -------
    dict
        Configuration dictionary, empty when no file is found

    """
    if explicit_path:
        return load_config_file(explicit_path)

    env_var_path = env_var_path if env_var_path is not None else os.environ.get(CONFIG_ENV_VAR)
    if env_var_path:
        return load_config_file(env_var_path)

    discovered = discover_config_file()
    if discovered is not None:
        logger.debug("Using discovered configuration %s", discovered)
        return load_config_file(discovered)

    return {}
