"""Karpenter consolidation blocker report command."""

import click

from kubekit.consolidation import ConsolidationAnalyzer, ListOptions, ResourceFetcher
from kubekit.core.context import pass_context, KubekitContext
from kubekit.core.exceptions import KubekitError, ValidationError


@click.command("consolidation")
@click.argument("nodes", nargs=-1, metavar="[NODE]...")
@click.option("--pods", is_flag=True, help="List the pods blocking consolidation of NODEs")
@click.option(
    "--nodeclaims",
    "--all",
    "include_nodeclaims",
    is_flag=True,
    help="Also read events recorded on Karpenter NodeClaims",
)
@click.option(
    "-o",
    "--output",
    "output_format",
    default=None,
    metavar="FORMAT",
    help="Print the node listing only: json, yaml, name, wide",
)
@click.option(
    "-n", "--namespace", default=None, help="Only list pods in this namespace (with --pods)"
)
@click.option("-l", "--selector", default=None, help="Node label selector")
@click.option("--field-selector", default=None, help="Node field selector")
@click.option("--sort-by", default=None, metavar="JSONPATH", help="Sort nodes by a JSONPath")
@click.option("--no-headers", is_flag=True, help="Do not print the header line")
@click.option("--show-labels", is_flag=True, help="Show node labels")
@click.option(
    "--threshold",
    type=click.IntRange(1, 100),
    default=None,
    help="CPU or memory request percentage reported as high-utilization",
)
@pass_context
def consolidation(
    ctx: KubekitContext,
    nodes: tuple[str, ...],
    pods: bool,
    include_nodeclaims: bool,
    output_format: str | None,
    namespace: str | None,
    selector: str | None,
    field_selector: str | None,
    sort_by: str | None,
    no_headers: bool,
    show_labels: bool,
    threshold: int | None,
) -> None:
    """Show why Karpenter is not consolidating nodes.

    Prints the node listing with PROVISIONER, CAPACITY-TYPE, CPU-UTIL,
    MEM-UTIL and CONSOLIDATION-BLOCKER columns. With --pods, lists the
    individual pods on the given nodes that block consolidation.

    \b
    Examples:
        kubekit consolidation
        kubekit consolidation ip-10-0-1-12.ec2.internal
        kubekit consolidation --pods ip-10-0-1-12.ec2.internal
        kubekit consolidation -l karpenter.sh/nodepool=default --nodeclaims
        kubekit consolidation -o json
    """
    if pods and not nodes:
        _argument_error(ctx, "--pods requires at least one NODE")
    if pods and output_format:
        _argument_error(ctx, "--pods cannot be combined with --output")

    options = ListOptions(
        label_selector=selector,
        field_selector=field_selector,
        sort_by=sort_by,
    )

    try:
        settings = ctx.profile.consolidation
        analyzer = ConsolidationAnalyzer(
            ResourceFetcher(ctx.k8s, settings),
            settings,
            utilization_threshold=threshold,
            include_nodeclaims=include_nodeclaims,
        )
        show_headers = not no_headers

        if output_format:
            text = analyzer.passthrough(
                output_format, options, nodes, show_labels, show_headers
            )
        elif pods:
            text = analyzer.pod_report(nodes, namespace, show_headers)
        else:
            text = analyzer.node_report(options, nodes, show_labels, show_headers)
            if not text:
                click.echo("No resources found", err=True)
                return

        ctx.output.print_text(text)

    except ValidationError as e:
        _argument_error(ctx, str(e))
    except KubekitError as e:
        ctx.output.print_error(str(e))
        raise click.Abort()


def _argument_error(ctx: KubekitContext, message: str) -> None:
    """Report an invalid invocation and exit with status 1."""
    ctx.output.print_error(message)
    click.echo(click.get_current_context().get_usage(), err=True)
    raise click.Abort()
