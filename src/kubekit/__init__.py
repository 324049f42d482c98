"""kubekit - kubectl companion views for nodes, events and resources."""

__version__ = "0.3.0"
