"""Configuration management for kubekit using Pydantic."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from kubekit.core.exceptions import ConfigError
from kubekit.core.output import OutputFormat
from kubekit.core.logging import LogLevel
from kubekit.core.utils import get_config_dir, merge_dicts


class K8sConfig(BaseModel):
    """Kubernetes connection configuration."""

    kubeconfig: str | None = None
    context: str | None = None
    namespace: str = "default"
    timeout: int = 30

    def get_kubeconfig(self) -> str | None:
        """Get kubeconfig path from config or environment."""
        return (
            os.environ.get("KUBEKIT_KUBECONFIG")
            or os.environ.get("KUBECONFIG")
            or self.kubeconfig
        )

    def get_context(self) -> str | None:
        """Get k8s context from config or environment."""
        return os.environ.get("KUBEKIT_K8S_CONTEXT") or self.context

    def get_namespace(self) -> str:
        """Get default namespace from config or environment."""
        return os.environ.get("KUBEKIT_K8S_NAMESPACE") or self.namespace


class ConsolidationConfig(BaseModel):
    """Settings for the node consolidation blocker report."""

    utilization_threshold: int = Field(default=80, ge=1, le=100)
    scoped_fetch_limit: int = Field(default=10, ge=0)
    nodeclaim_crd: str = "nodeclaims.karpenter.sh"
    pod_local_storage: bool = True

    def get_utilization_threshold(self) -> int:
        """Get the high-utilization threshold from config or environment."""
        value = os.environ.get("KUBEKIT_UTILIZATION_THRESHOLD")
        if value:
            try:
                threshold = int(value)
            except ValueError:
                raise ConfigError(
                    f"KUBEKIT_UTILIZATION_THRESHOLD must be an integer, got '{value}'"
                )
            if not 1 <= threshold <= 100:
                raise ConfigError(
                    f"KUBEKIT_UTILIZATION_THRESHOLD must be between 1 and 100, got {threshold}"
                )
            return threshold
        return self.utilization_threshold


class KubeconfigSwitcherConfig(BaseModel):
    """Kubeconfig switcher configuration."""

    directory: str = "~/.kube"
    shell: str = "fish"

    @field_validator("shell")
    @classmethod
    def validate_shell(cls, v: str) -> str:
        if v not in ("fish", "bash", "zsh"):
            raise ValueError("shell must be 'fish', 'bash', or 'zsh'")
        return v

    def get_directory(self) -> Path:
        """Get the directory holding kubeconfig files."""
        return Path(
            os.environ.get("KUBEKIT_KUBECONFIG_DIR") or self.directory
        ).expanduser()


class ProfileConfig(BaseModel):
    """Profile configuration grouping all settings."""

    k8s: K8sConfig = Field(default_factory=K8sConfig)
    consolidation: ConsolidationConfig = Field(default_factory=ConsolidationConfig)
    kubeconfig: KubeconfigSwitcherConfig = Field(default_factory=KubeconfigSwitcherConfig)


class GlobalConfig(BaseModel):
    """Global settings."""

    output_format: OutputFormat = OutputFormat.TABLE
    color: str = "auto"  # auto, always, never
    verbosity: LogLevel = LogLevel.WARNING

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        if v not in ("auto", "always", "never"):
            raise ValueError("color must be 'auto', 'always', or 'never'")
        return v


class KubekitConfig(BaseModel):
    """Main configuration model."""

    model_config = {"populate_by_name": True}

    version: str = "1"
    global_settings: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    profiles: dict[str, ProfileConfig] = Field(default_factory=lambda: {"default": ProfileConfig()})

    def get_profile(self, name: str | None = None) -> ProfileConfig:
        """Get a profile by name, defaulting to 'default'."""
        profile_name = name or "default"
        if profile_name not in self.profiles:
            raise ConfigError(f"Profile '{profile_name}' not found")
        return self.profiles[profile_name]


class ConfigLoader:
    """Loads and merges configuration from multiple sources."""

    CONFIG_FILENAMES = ["kubekit.yaml", "kubekit.yml", ".kubekit.yaml", ".kubekit.yml"]

    def __init__(self):
        self._config: KubekitConfig | None = None

    def load(self, config_file: str | Path | None = None) -> KubekitConfig:
        """Load configuration from files.

        Priority (highest to lowest):
        1. Explicitly specified config file
        2. Project config (./kubekit.yaml, searched upwards)
        3. User config (~/.kubekit/config.yaml)

        Args:
            config_file: Optional explicit config file path

        Returns:
            Merged configuration
        """
        configs: list[dict[str, Any]] = []

        user_config_path = get_config_dir() / "config.yaml"
        if user_config_path.exists():
            configs.append(self._load_yaml_file(user_config_path))

        project_config = self._find_project_config()
        if project_config:
            configs.append(self._load_yaml_file(project_config))

        if config_file:
            config_path = Path(config_file)
            if not config_path.exists():
                raise ConfigError(f"Config file not found: {config_file}")
            configs.append(self._load_yaml_file(config_path))

        merged: dict[str, Any] = {}
        for config in configs:
            merged = merge_dicts(merged, config)

        try:
            self._config = KubekitConfig(**merged)
        except ValueError as e:
            raise ConfigError(f"Invalid configuration: {e}")
        return self._config

    def _find_project_config(self) -> Path | None:
        """Find project config file in current or parent directories."""
        current = Path.cwd()

        while current != current.parent:
            for filename in self.CONFIG_FILENAMES:
                config_path = current / filename
                if config_path.exists():
                    return config_path
            current = current.parent

        return None

    def _load_yaml_file(self, path: Path) -> dict[str, Any]:
        """Load a YAML config file."""
        try:
            with open(path) as f:
                content = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}")
        if not isinstance(content, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return content


# Global config loader instance
_config_loader = ConfigLoader()


def load_config(config_file: str | Path | None = None) -> KubekitConfig:
    """Load kubekit configuration.

    Args:
        config_file: Optional explicit config file path

    Returns:
        Loaded configuration
    """
    return _config_loader.load(config_file)


def get_default_config() -> KubekitConfig:
    """Get default configuration without loading from files."""
    return KubekitConfig()
