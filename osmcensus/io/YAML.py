from pathlib import Path
from typing import Mapping

from yaml import YAMLError, safe_load

from osmcensus.util.exception import CensusConfigError


def load_yaml(path: Path) -> Mapping:
    """
    Load a YAML document. An empty document is returned as an empty mapping.

    :raises CensusConfigError: if the file can't be read or isn't a YAML mapping
    """
    try:
        with open(path, "r") as fh:
            yaml = safe_load(fh)
    except (OSError, YAMLError) as e:
        raise CensusConfigError(f"unable to read {path}: {e}")

    if yaml is None:
        return {}
    if not isinstance(yaml, Mapping):
        raise CensusConfigError(f"{path} must contain a mapping at the top level")

    return yaml
