"""List events oldest first."""

from typing import Any

import click

from kubekit.core.context import pass_context, KubekitContext
from kubekit.core.exceptions import K8sError
from kubekit.core.output import OutputFormat, render_plain_table
from kubekit.core.utils import format_age, truncate_string


def event_timestamp(event: dict[str, Any]) -> str:
    """Most recent time an event was seen, as an RFC 3339 string."""
    return (
        event.get("lastTimestamp")
        or event.get("eventTime")
        or event.get("firstTimestamp")
        or (event.get("metadata") or {}).get("creationTimestamp")
        or ""
    )


def sort_events(events: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Sort events ascending, so the newest is printed last."""
    return sorted(events, key=event_timestamp)


def event_selector(for_object: str | None) -> str | None:
    """Field selector for ``--for kind/name``."""
    if not for_object:
        return None
    kind, _, name = for_object.rpartition("/")
    if kind:
        return f"involvedObject.kind={kind[:1].upper()}{kind[1:]},involvedObject.name={name}"
    return f"involvedObject.name={name}"


@click.command("events")
@click.option("-n", "--namespace", default=None, help="Namespace")
@click.option("-A", "--all-namespaces", is_flag=True, help="All namespaces")
@click.option("--type", "event_type", default=None, help="Event type (Normal, Warning)")
@click.option("--for", "for_object", default=None, help="Filter for object (e.g., Pod/my-pod)")
@click.option("--no-headers", is_flag=True, help="Do not print the header line")
@pass_context
def events(
    ctx: KubekitContext,
    namespace: str | None,
    all_namespaces: bool,
    event_type: str | None,
    for_object: str | None,
    no_headers: bool,
) -> None:
    """List events, oldest first.

    \b
    Examples:
        kubekit events
        kubekit events -A --type Warning
        kubekit events --for Node/ip-10-0-1-12.ec2.internal -A
        kubekit -o json events -n production
    """
    try:
        events_list = ctx.k8s.list_events(
            namespace=namespace or ctx.profile.k8s.get_namespace(),
            field_selector=event_selector(for_object),
            all_namespaces=all_namespaces,
        )
    except K8sError as e:
        ctx.output.print_error(f"Failed to get events: {e}")
        raise click.Abort()

    if event_type:
        events_list = [e for e in events_list if (e.get("type") or "").lower() == event_type.lower()]

    events_list = sort_events(events_list)

    if ctx.output_format != OutputFormat.TABLE:
        ctx.output.print_data(events_list)
        return

    if not events_list:
        click.echo("No events found", err=True)
        return

    headers = ["LAST SEEN", "TYPE", "REASON", "OBJECT", "MESSAGE"]
    if all_namespaces:
        headers.insert(0, "NAMESPACE")

    rows = []
    for event in events_list:
        involved = event.get("involvedObject") or {}
        row = [
            format_age(event_timestamp(event) or None),
            event.get("type") or "",
            event.get("reason") or "",
            f"{(involved.get('kind') or '').lower()}/{involved.get('name') or ''}",
            truncate_string(" ".join((event.get("message") or "").split()), 120),
        ]
        if all_namespaces:
            row.insert(0, (event.get("metadata") or {}).get("namespace") or "")
        rows.append(row)

    ctx.output.print_text(render_plain_table(headers, rows, show_headers=not no_headers))
