"""CLI commands for kubekit."""
