"""Resolve user-typed resource kinds against API discovery."""

from typing import Any

from kubekit.clients.k8s import K8sClient
from kubekit.core.exceptions import ValidationError
from kubekit.core.suggestions import format_suggestions, suggest_names


def resource_aliases(resource: dict[str, Any]) -> set[str]:
    """Every name a resource can be addressed by, lowercased."""
    names = {resource["name"], resource["kind"].lower()}
    if resource.get("singular_name"):
        names.add(resource["singular_name"])
    names.update(short.lower() for short in resource.get("short_names", []))
    return names


class ResourceResolver:
    """Maps ``pods``, ``pod``, ``po``, ``Pod`` or ``deployments.apps`` to a resource."""

    def __init__(self, client: K8sClient):
        self._client = client
        self._resources: list[dict[str, Any]] | None = None

    @property
    def resources(self) -> list[dict[str, Any]]:
        if self._resources is None:
            self._resources = self._client.list_api_resources()
        return self._resources

    def resolve(self, kind: str) -> dict[str, Any]:
        """Find the discovered resource for a kind name.

        Core-group resources win over same-named resources in other groups.

        Raises:
            ValidationError: If no resource matches
        """
        wanted = kind.lower()
        name, _, group = wanted.partition(".")

        matches = []
        for resource in self.resources:
            if name not in resource_aliases(resource):
                continue
            if group and resource["group"] != group:
                continue
            matches.append(resource)

        if not matches:
            known = sorted({alias for r in self.resources for alias in resource_aliases(r)})
            message = f'the server doesn\'t have a resource type "{kind}"'
            hint = format_suggestions(suggest_names(wanted, known), markup=False)
            if hint:
                message = f"{message}. {hint}"
            raise ValidationError(message)

        matches.sort(key=lambda r: r["group"] != "")
        return matches[0]
