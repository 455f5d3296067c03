"""
Configuration for assay containers.

Options can be built directly, from a dictionary, or from a YAML/JSON file.
They are attached to a container at construction and carried through every
transformation, so derived containers behave like their parent.
"""

import json
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import numpy as np
import yaml

__all__ = ['ContainerOptions', 'load_config', 'DEFAULT_OPTIONS']


@dataclass(frozen=True)
class ContainerOptions:
    """
    Behaviour switches for AssayContainer.

    Attributes:
        default_assay: Assay returned by container.assay() when no name is given
            (falls back to the first assay if absent)
        copy_on_create: Copy input arrays and frames at construction so callers
            keep no alias into the container
        dtype: Numeric dtype used for assay values
        warn_on_empty: Emit a UserWarning when a filter keeps nothing
    """
    default_assay: str = "counts"
    copy_on_create: bool = True
    dtype: str = "float64"
    warn_on_empty: bool = True

    def __post_init__(self):
        try:
            kind = np.dtype(self.dtype).kind
        except TypeError as e:
            raise ValueError(f"Invalid dtype {self.dtype!r}: {e}")
        if kind not in "iuf":
            raise ValueError(f"dtype must be numeric, got {self.dtype!r}")

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> "ContainerOptions":
        """
        Build options from a mapping, rejecting unknown keys.

        Examples:
            >>> ContainerOptions.from_dict({"default_assay": "logcounts"}).default_assay
            'logcounts'
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config) - known)
        if unknown:
            raise ValueError(f"Unknown container options: {unknown}. Valid: {sorted(known)}")
        return cls(**dict(config))

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "ContainerOptions":
        """Load options from a YAML or JSON file."""
        return cls.from_dict(load_config(Path(config_path)))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_OPTIONS = ContainerOptions()


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from YAML or JSON file.

    Parameters:
        config_path: Path to config file (.yaml, .yml, or .json)

    Returns:
        Dictionary with configuration values (empty for an empty file)

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is unsupported or invalid

    Examples:
        >>> config = load_config(Path("container.yaml"))
        >>> print(config['default_assay'])
        counts
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()
    if suffix not in ('.yaml', '.yml', '.json'):
        raise ValueError(
            f"Unsupported config format: {suffix}. "
            f"Use .yaml, .yml, or .json"
        )

    try:
        with open(config_path, 'r') as f:
            if suffix == '.json':
                config = json.load(f)
            else:
                config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}")

    if config is None:
        return {}

    if not isinstance(config, dict):
        raise ValueError("Config file must contain a dictionary/mapping at top level")

    return config
