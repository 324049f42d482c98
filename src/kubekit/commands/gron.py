"""Flatten resource JSON into greppable assignments."""

import json
import sys

import click

from kubekit.commands.dump import fetch_objects
from kubekit.core.context import pass_context, KubekitContext
from kubekit.core.exceptions import KubekitError
from kubekit.core.utils import gron as gron_lines


@click.command("gron")
@click.argument("kind", required=False)
@click.argument("names", nargs=-1)
@click.option("-n", "--namespace", default=None, help="Namespace")
@click.option("-A", "--all-namespaces", is_flag=True, help="All namespaces")
@click.option("-l", "--selector", default=None, help="Label selector")
@click.option("--stdin", "from_stdin", is_flag=True, help="Read JSON from stdin instead")
@pass_context
def gron(
    ctx: KubekitContext,
    kind: str | None,
    names: tuple[str, ...],
    namespace: str | None,
    all_namespaces: bool,
    selector: str | None,
    from_stdin: bool,
) -> None:
    """Print resources as one assignment per line.

    A single object is the root value; several objects are an array.

    \b
    Examples:
        kubekit gron pod my-pod | grep image
        kubekit gron deploy -l app=web
        kubectl get svc -o json | kubekit gron --stdin
    """
    if from_stdin:
        try:
            value = json.load(sys.stdin)
        except ValueError as e:
            ctx.output.print_error(f"Invalid JSON on stdin: {e}")
            raise click.Abort()
    else:
        if not kind:
            ctx.output.print_error("KIND is required unless --stdin is given")
            raise click.Abort()
        try:
            objects = fetch_objects(ctx, kind, names, namespace, all_namespaces, selector)
        except KubekitError as e:
            ctx.output.print_error(str(e))
            raise click.Abort()
        value = objects[0] if len(names) == 1 else objects

    ctx.output.print_text("\n".join(gron_lines(value)))
