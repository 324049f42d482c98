"""Allow running kubekit as ``python -m kubekit``."""

from kubekit.cli import main

main()
