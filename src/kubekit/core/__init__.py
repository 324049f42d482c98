"""Core utilities and shared components for kubekit."""

# Note: Import context lazily to avoid circular imports
# Use: from kubekit.core.context import KubekitContext, pass_context
from kubekit.core.exceptions import (
    KubekitError,
    ConfigError,
    K8sError,
    AuthenticationError,
    PrerequisiteError,
)
from kubekit.core.output import OutputFormatter, console

__all__ = [
    "KubekitError",
    "ConfigError",
    "K8sError",
    "AuthenticationError",
    "PrerequisiteError",
    "OutputFormatter",
    "console",
]
