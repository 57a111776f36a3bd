import logging
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "v1alpha1"


class IgnoreConfig(BaseModel):
    """Schemas the generator should leave out of resource classification."""

    # Names of schema definitions that must never become resources, even when
    # an operation uses them as a body. They are still emitted as plain types.
    resource_names: List[str] = Field(default_factory=list)


class GeneratorConfig(BaseModel):
    """
    Settings for a generation run. Values come from an optional YAML file and
    are overridden by command-line flags.
    """

    # The Kubernetes API version of the generated types (e.g., 'v1alpha1').
    api_version: str = DEFAULT_API_VERSION

    # The API group is '<alias>.<api_group_suffix>'.
    api_group_suffix: str = "services.k8s.aws"

    # The `info` extension of the API document that holds the group alias.
    api_alias_extension: str = "x-aws-api-alias"

    ignore: IgnoreConfig = Field(default_factory=IgnoreConfig)

    @classmethod
    def from_file(
        cls, path: Optional[str], overrides: Optional[Dict[str, Any]] = None
    ) -> "GeneratorConfig":
        """
        Loads the configuration from a YAML file, then applies `overrides`
        (keys whose value is None are skipped).

        Raises:
            ConfigError: If the file cannot be read, parsed, or validated.
        """
        data: Dict[str, Any] = {}
        if path:
            try:
                with open(path, "r") as f:
                    data = yaml.safe_load(f) or {}
            except (IOError, yaml.YAMLError) as e:
                raise ConfigError(
                    f"Error reading or parsing config file '{path}': {e}"
                ) from e
            if not isinstance(data, dict):
                raise ConfigError(f"Config file '{path}' must contain a mapping.")
            logger.debug("Loaded generator config from '%s'", path)

        for key, value in (overrides or {}).items():
            if value is not None:
                data[key] = value

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid generator config: {e}") from e
