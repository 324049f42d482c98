"""Click context object for sharing state across commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kubekit.config import KubekitConfig, ProfileConfig, get_default_config
from kubekit.core.output import OutputFormat, OutputFormatter
from kubekit.core.logging import LogLevel, setup_logging, StructuredLogger

if TYPE_CHECKING:
    from kubekit.clients.k8s import K8sClient


class KubekitContext:
    """Shared context object for kubekit commands.

    This object is passed through Click's context mechanism and provides
    access to configuration, the cluster client, and output helpers.
    """

    def __init__(
        self,
        config: KubekitConfig | None = None,
        profile: str | None = None,
        output_format: OutputFormat | None = None,
        verbose: int = 0,
        quiet: bool = False,
        color: bool = True,
    ):
        # Load or use provided config
        self._config = config or get_default_config()
        self._profile_name = profile or "default"

        # Output settings (CLI overrides config)
        self._output_format = output_format or self._config.global_settings.output_format
        self._verbose = verbose

        # Determine log level from verbosity
        if verbose >= 3:
            log_level = LogLevel.DEBUG
        elif verbose >= 1:
            log_level = LogLevel.INFO
        elif quiet:
            log_level = LogLevel.ERROR
        else:
            log_level = self._config.global_settings.verbosity

        setup_logging(log_level, rich_output=color)
        self._logger = StructuredLogger("context")

        self._output = OutputFormatter(
            format=self._output_format,
            color=color,
            quiet=quiet,
        )

        # Lazy-loaded client
        self._k8s_client: K8sClient | None = None

    @property
    def config(self) -> KubekitConfig:
        """Get the loaded configuration."""
        return self._config

    @property
    def profile(self) -> ProfileConfig:
        """Get the current profile configuration."""
        return self._config.get_profile(self._profile_name)

    @property
    def profile_name(self) -> str:
        return self._profile_name

    @property
    def output(self) -> OutputFormatter:
        return self._output

    @property
    def output_format(self) -> OutputFormat:
        return self._output_format

    @property
    def verbose(self) -> int:
        return self._verbose

    @property
    def logger(self) -> StructuredLogger:
        return self._logger

    @property
    def k8s(self) -> "K8sClient":
        """Get or create the Kubernetes client for the current profile."""
        if self._k8s_client is None:
            from kubekit.clients.k8s import K8sClient

            self._k8s_client = K8sClient(self.profile.k8s)
        return self._k8s_client


# Click decorator for passing context
pass_context = click.make_pass_decorator(KubekitContext, ensure=True)
