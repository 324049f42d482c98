"""API clients for kubekit."""

from kubekit.clients.k8s import K8sClient
from kubekit.clients.discovery import ResourceResolver

__all__ = ["K8sClient", "ResourceResolver"]
