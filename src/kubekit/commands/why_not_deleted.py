"""Explain what is keeping an object from being deleted."""

from typing import Any

import click

from kubekit.clients import ResourceResolver
from kubekit.core.context import pass_context, KubekitContext
from kubekit.core.exceptions import KubekitError
from kubekit.core.output import OutputFormat

KNOWN_FINALIZERS = {
    "kubernetes": "namespace content is still being deleted",
    "kubernetes.io/pvc-protection": "claim is still mounted by a pod",
    "kubernetes.io/pv-protection": "volume is still bound to a claim",
    "foregroundDeletion": "waiting for dependents with blockOwnerDeletion to be deleted",
    "orphan": "dependents are being orphaned",
    "karpenter.sh/termination": "Karpenter is draining the node and terminating its instance",
    "service.kubernetes.io/load-balancer-cleanup": "cloud load balancer is being removed",
    "batch.kubernetes.io/job-tracking": "job controller has not yet accounted for the pod",
}


def explain_finalizer(name: str) -> str:
    return KNOWN_FINALIZERS.get(name, "removed by the controller that added it")


def pods_using_claim(pods: list[dict[str, Any]], claim_name: str) -> list[str]:
    """Names of pods mounting a PersistentVolumeClaim."""
    users = []
    for pod in pods:
        for volume in (pod.get("spec") or {}).get("volumes") or []:
            claim = volume.get("persistentVolumeClaim") or {}
            if claim.get("claimName") == claim_name:
                users.append((pod.get("metadata") or {}).get("name", ""))
                break
    return sorted(users)


def diagnose(
    obj: dict[str, Any],
    resource: dict[str, Any],
    claim_users: list[str] | None = None,
) -> dict[str, Any]:
    """Collect everything that can hold up deletion of an object."""
    metadata = obj.get("metadata") or {}
    finalizers = list(metadata.get("finalizers") or [])
    if resource["kind"] == "Namespace":
        finalizers.extend((obj.get("spec") or {}).get("finalizers") or [])

    report: dict[str, Any] = {
        "object": f"{resource['name']}/{metadata.get('name', '')}",
        "deletion_requested": metadata.get("deletionTimestamp") or "no",
        "finalizers": {name: explain_finalizer(name) for name in finalizers},
        "owners": [
            {
                "kind": ref.get("kind", ""),
                "name": ref.get("name", ""),
                "block_owner_deletion": bool(ref.get("blockOwnerDeletion")),
            }
            for ref in metadata.get("ownerReferences") or []
        ],
    }
    if resource["kind"] == "Namespace":
        report["conditions"] = [
            f"{c.get('type')}: {c.get('message', '')}"
            for c in (obj.get("status") or {}).get("conditions") or []
            if c.get("status") == "True"
        ]
    if claim_users is not None:
        report["mounted_by"] = claim_users
    return report


def _print_report(ctx: KubekitContext, report: dict[str, Any]) -> None:
    out = ctx.output
    out.print(f"[bold]{report['object']}[/bold]")
    out.print(f"Deletion requested: {report['deletion_requested']}")

    if report["finalizers"]:
        out.print("Finalizers:")
        for name, reason in report["finalizers"].items():
            out.print(f"  {name}: {reason}")
    else:
        out.print("Finalizers: none")

    for owner in report["owners"]:
        blocking = " (blockOwnerDeletion)" if owner["block_owner_deletion"] else ""
        out.print(f"Owned by {owner['kind']}/{owner['name']}{blocking}")

    for condition in report.get("conditions", []):
        out.print(f"Condition {condition}")

    if report.get("mounted_by"):
        out.print(f"Mounted by pods: {', '.join(report['mounted_by'])}")


@click.command("why-not-deleted")
@click.argument("kind")
@click.argument("name")
@click.option("-n", "--namespace", default=None, help="Namespace")
@pass_context
def why_not_deleted(
    ctx: KubekitContext,
    kind: str,
    name: str,
    namespace: str | None,
) -> None:
    """Show the finalizers, owners and users holding up deletion.

    \b
    Examples:
        kubekit why-not-deleted namespace staging
        kubekit why-not-deleted pvc data-postgres-0 -n db
        kubekit why-not-deleted node ip-10-0-1-12.ec2.internal
    """
    try:
        resource = ResourceResolver(ctx.k8s).resolve(kind)
        ns = namespace or ctx.profile.k8s.get_namespace()
        obj = ctx.k8s.get_object(resource, name, namespace=ns)
        if obj is None:
            raise KubekitError(f'{resource["name"]} "{name}" not found')

        claim_users = None
        if resource["kind"] == "PersistentVolumeClaim":
            claim_users = pods_using_claim(ctx.k8s.list_pods(namespace=ns), name)
    except KubekitError as e:
        ctx.output.print_error(str(e))
        raise click.Abort()

    report = diagnose(obj, resource, claim_users)
    if ctx.output_format != OutputFormat.TABLE:
        ctx.output.print_data(report)
    else:
        _print_report(ctx, report)
