"""Dump resources as YAML with server-populated noise removed."""

import copy
from typing import Any

import click
import yaml

from kubekit.clients import ResourceResolver
from kubekit.core.context import pass_context, KubekitContext
from kubekit.core.exceptions import KubekitError

LAST_APPLIED_ANNOTATION = "kubectl.kubernetes.io/last-applied-configuration"
CLEAN_METADATA_FIELDS = ("uid", "resourceVersion", "generation", "creationTimestamp", "selfLink")


def strip_object(obj: dict[str, Any], clean: bool = False) -> dict[str, Any]:
    """Return a copy of an object without managed fields.

    With ``clean``, also drop the fields the server fills in so the result
    can be re-applied elsewhere.
    """
    result = copy.deepcopy(obj)
    metadata = result.get("metadata") or {}
    metadata.pop("managedFields", None)

    if clean:
        for key in CLEAN_METADATA_FIELDS:
            metadata.pop(key, None)
        annotations = metadata.get("annotations") or {}
        annotations.pop(LAST_APPLIED_ANNOTATION, None)
        if "annotations" in metadata and not annotations:
            del metadata["annotations"]
        result.pop("status", None)
    return result


def fetch_objects(
    ctx: KubekitContext,
    kind: str,
    names: tuple[str, ...],
    namespace: str | None,
    all_namespaces: bool,
    selector: str | None,
) -> list[dict[str, Any]]:
    """Fetch named objects of a kind, or list them all when no names are given.

    Raises:
        KubekitError: If the kind is unknown, a named object is missing, or
            the API call fails
    """
    resource = ResourceResolver(ctx.k8s).resolve(kind)
    ns = namespace or ctx.profile.k8s.get_namespace()

    if not names:
        return ctx.k8s.list_objects(
            resource,
            namespace=ns,
            label_selector=selector,
            all_namespaces=all_namespaces,
        )

    objects = []
    for name in names:
        obj = ctx.k8s.get_object(resource, name, namespace=ns)
        if obj is None:
            raise KubekitError(f'{resource["name"]} "{name}" not found')
        objects.append(obj)
    return objects


@click.command("dump")
@click.argument("kind")
@click.argument("names", nargs=-1)
@click.option("-n", "--namespace", default=None, help="Namespace")
@click.option("-A", "--all-namespaces", is_flag=True, help="All namespaces")
@click.option("-l", "--selector", default=None, help="Label selector")
@click.option("--clean", is_flag=True, help="Also strip uid, resourceVersion, status and similar")
@pass_context
def dump(
    ctx: KubekitContext,
    kind: str,
    names: tuple[str, ...],
    namespace: str | None,
    all_namespaces: bool,
    selector: str | None,
    clean: bool,
) -> None:
    """Dump resources as YAML documents.

    \b
    Examples:
        kubekit dump deployment my-app -n production
        kubekit dump cm -l app=web --clean
        kubekit dump nodes
    """
    try:
        objects = fetch_objects(ctx, kind, names, namespace, all_namespaces, selector)
    except KubekitError as e:
        ctx.output.print_error(str(e))
        raise click.Abort()

    if not objects:
        click.echo("No resources found", err=True)
        return

    documents = [strip_object(obj, clean) for obj in objects]
    ctx.output.print_text(
        yaml.safe_dump_all(documents, default_flow_style=False, sort_keys=False).rstrip("\n")
    )
