"""Custom exceptions for kubekit."""

from typing import Any


class KubekitError(Exception):
    """Base exception for all kubekit errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ConfigError(KubekitError):
    """Configuration-related errors."""

    pass


class ValidationError(KubekitError):
    """Input validation errors."""

    pass


class PrerequisiteError(KubekitError):
    """A required library or external resource is unavailable."""

    def __init__(
        self,
        message: str,
        remediation: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.remediation = remediation

    def __str__(self) -> str:
        text = super().__str__()
        if self.remediation:
            return f"{text}\n{self.remediation}"
        return text


class K8sError(KubekitError):
    """Kubernetes API errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code


class AuthenticationError(KubekitError):
    """Kubeconfig loading and authentication errors."""

    pass
