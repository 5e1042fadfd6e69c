"""
Preview configuration (livepane.json).
"""
import json
import os
from typing import List

from pydantic import BaseModel, ValidationError as PydanticValidationError

from preview.errors import ConfigError
from preview.log import debug_log

CONFIG_FILENAME = "livepane.json"


def config_paths():
    """Lookup order: the working directory first, then the user's home."""
    return [CONFIG_FILENAME, os.path.expanduser("~/.livepane/config.json")]


class PreviewConfig(BaseModel):
    """Settings for compiling and serving previews."""
    pragma: str = "React.createElement"
    pragma_frag: str = "React.Fragment"
    poll_interval: float = 0.5
    binding_sets: List[str] = ["react", "ui"]
    strict_registry: bool = False


def load_config(paths=None):
    """Load the first config file that exists, or the defaults when none does."""
    for p in paths if paths is not None else config_paths():
        if not os.path.exists(p):
            continue
        debug_log(f"Loading config from {p}")
        try:
            with open(p, "r") as f:
                data = json.load(f)
            return PreviewConfig(**data)
        except json.JSONDecodeError as e:
            raise ConfigError(f"{p}: invalid JSON ({e.msg} at line {e.lineno})") from e
        except (TypeError, PydanticValidationError) as e:
            raise ConfigError(f"{p}: invalid configuration: {e}") from e
    return PreviewConfig()


def write_default_config(path=CONFIG_FILENAME):
    with open(path, "w") as f:
        json.dump(PreviewConfig().model_dump(), f, indent=2)
        f.write("\n")
    return path
