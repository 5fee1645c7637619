"""Configuration management for kube-composer."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .constants import DEFAULT_PROJECT_NAME


@dataclass
class GenerateConfig:
    """Configuration for a single generate run."""

    state_file: str
    output: Optional[str] = None
    output_dir: Optional[str] = None

    # Output settings
    force: bool = False
    validate_output: bool = True

    # Logging
    verbose: bool = False


@dataclass
class GlobalConfig:
    """Global configuration for the tool."""

    # Defaults for freshly initialised working sets
    default_project_name: str = DEFAULT_PROJECT_NAME
    default_global_labels: Dict[str, str] = field(default_factory=dict)

    # Feature flags
    validate_output: bool = True

    # Paths
    config_file_paths: List[str] = field(default_factory=lambda: [
        "~/.config/kube-composer/config.yaml",
        "~/.kube-composer.yaml",
        "./.kube-composer.yaml",
    ])


class ConfigLoader:
    """Loads configuration from YAML files."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def load_config(
        self,
        config_file: Optional[str] = None,
        global_config: Optional[GlobalConfig] = None,
    ) -> GlobalConfig:
        """
        Load configuration from file.

        Args:
            config_file: Specific config file to load
            global_config: Base configuration to extend

        Returns:
            Loaded global configuration
        """
        if global_config is None:
            global_config = GlobalConfig()

        config_data = self._load_from_file(config_file, global_config.config_file_paths)

        if config_data:
            return self._merge_config_data(global_config, config_data)

        return global_config

    def _load_from_file(
        self,
        config_file: Optional[str],
        search_paths: List[str],
    ) -> Optional[Dict[str, Any]]:
        """Load configuration from the first YAML file that exists."""
        paths_to_try = [config_file] if config_file else list(search_paths)

        for path_str in paths_to_try:
            path = Path(path_str).expanduser()
            if path.exists():
                return self._parse_config_file(path)
            if config_file:
                self.logger.warning("Config file not found: %s", path)

        return None

    def _parse_config_file(self, path: Path) -> Dict[str, Any]:
        """Parse a YAML configuration file."""
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            self.logger.error("Failed to parse config file %s: %s", path, e)
            return {}

        if not isinstance(data, dict):
            self.logger.warning("Config file %s does not contain a dictionary", path)
            return {}

        self.logger.info("Loaded configuration from: %s", path)
        return data

    def _merge_config_data(self, base_config: GlobalConfig, config_data: Dict[str, Any]) -> GlobalConfig:
        """Merge configuration data into base config."""
        if config_data.get("default_project_name"):
            base_config.default_project_name = str(config_data["default_project_name"])

        if "validate_output" in config_data:
            base_config.validate_output = bool(config_data["validate_output"])

        labels = config_data.get("default_global_labels")
        if isinstance(labels, dict):
            base_config.default_global_labels = {str(k): str(v) for k, v in labels.items()}
        elif labels is not None:
            self.logger.warning("Ignoring default_global_labels: expected a mapping")

        self.logger.debug("Merged configuration data successfully")
        return base_config


class ConfigValidator:
    """Validates configuration settings."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def validate_generate_config(self, config: GenerateConfig) -> List[str]:
        """
        Validate generate configuration.

        Args:
            config: Generate configuration to validate

        Returns:
            List of validation error messages
        """
        errors = []

        if not config.state_file:
            errors.append("State file is required")
        elif not Path(config.state_file).expanduser().exists():
            errors.append(f"State file not found: {config.state_file}")

        if config.output and config.output_dir:
            errors.append("Use either --output or --output-dir, not both")

        if config.output and not config.force and Path(config.output).expanduser().exists():
            errors.append(f"Output file already exists: {config.output} (use --force to overwrite)")

        if errors:
            self.logger.warning("Configuration validation failed: %s", "; ".join(errors))

        return errors

    def validate_global_config(self, config: GlobalConfig) -> List[str]:
        """
        Validate global configuration.

        Args:
            config: Global configuration to validate

        Returns:
            List of validation error messages
        """
        errors = []

        if not config.default_project_name:
            errors.append("default_project_name cannot be empty")

        for key in config.default_global_labels:
            if not self._is_valid_label_key(key):
                errors.append(f"Invalid label key in default_global_labels: {key}")

        if errors:
            self.logger.warning("Global configuration validation failed: %s", "; ".join(errors))

        return errors

    def _is_valid_label_key(self, key: str) -> bool:
        """Check if a label key is valid for Kubernetes (optional DNS prefix plus name)."""
        prefix, _, name = key.rpartition("/")
        if prefix and not re.match(r'^[a-z0-9]([-a-z0-9.]*[a-z0-9])?$', prefix):
            return False
        return bool(re.match(r'^[A-Za-z0-9]([-A-Za-z0-9_.]*[A-Za-z0-9])?$', name)) and len(name) <= 63


def load_config_from_args(args) -> GenerateConfig:
    """Convert argparse arguments to GenerateConfig."""
    return GenerateConfig(
        state_file=args.state,
        output=getattr(args, "output", None),
        output_dir=getattr(args, "output_dir", None),
        force=getattr(args, "force", False),
        validate_output=getattr(args, "validate", None) is not False,
        verbose=getattr(args, "verbose", False),
    )
