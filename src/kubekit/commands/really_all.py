"""List every object of every listable resource kind."""

import click

from kubekit.core.context import pass_context, KubekitContext
from kubekit.core.exceptions import K8sError
from kubekit.core.output import OutputFormat, render_plain_table

SKIPPED_RESOURCES = {"events"}


@click.command("really-all")
@click.option("-n", "--namespace", default=None, help="Namespace")
@click.option("-A", "--all-namespaces", is_flag=True, help="All namespaces")
@click.option("--cluster", "include_cluster", is_flag=True, help="Include cluster-scoped kinds")
@click.option("--no-headers", is_flag=True, help="Do not print the header line")
@pass_context
def really_all(
    ctx: KubekitContext,
    namespace: str | None,
    all_namespaces: bool,
    include_cluster: bool,
    no_headers: bool,
) -> None:
    """List everything, unlike 'kubectl get all'.

    \b
    Examples:
        kubekit really-all -n production
        kubekit really-all -A --cluster
    """
    try:
        resources = ctx.k8s.list_api_resources()
    except K8sError as e:
        ctx.output.print_error(f"Failed to discover API resources: {e}")
        raise click.Abort()

    ns = namespace or ctx.profile.k8s.get_namespace()
    rows = []
    seen: set[tuple[str, str]] = set()
    for resource in sorted(resources, key=lambda r: (r["group"], r["name"])):
        if "list" not in resource["verbs"] or resource["name"] in SKIPPED_RESOURCES:
            continue
        if (resource["group"], resource["name"]) in seen:
            continue
        seen.add((resource["group"], resource["name"]))
        if not resource["namespaced"] and not include_cluster:
            continue

        try:
            objects = ctx.k8s.list_objects(
                resource, namespace=ns, all_namespaces=all_namespaces
            )
        except K8sError as e:
            ctx.output.print_warning(f"Skipping {resource['name']}: {e}")
            continue

        kind = resource["kind"] if not resource["group"] else f"{resource['kind']}.{resource['group']}"
        for obj in objects:
            metadata = obj.get("metadata") or {}
            rows.append(
                {
                    "kind": kind,
                    "namespace": metadata.get("namespace") or "",
                    "name": metadata.get("name") or "",
                }
            )

    ctx.logger.info("Listed resources", kinds=len({r["kind"] for r in rows}), objects=len(rows))

    if ctx.output_format != OutputFormat.TABLE:
        ctx.output.print_data(rows)
        return
    if not rows:
        click.echo("No resources found", err=True)
        return

    ctx.output.print_text(
        render_plain_table(
            ["KIND", "NAMESPACE", "NAME"],
            [[r["kind"], r["namespace"], r["name"]] for r in rows],
            show_headers=not no_headers,
        )
    )
