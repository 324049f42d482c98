"""Main CLI entry point for kubekit."""

import sys
from typing import Any

import click
from rich.console import Console

from kubekit import __version__
from kubekit.config import load_config
from kubekit.core.context import KubekitContext
from kubekit.core.output import OutputFormat
from kubekit.core.exceptions import KubekitError, ConfigError
from kubekit.core.suggestions import SuggestingGroup


CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 120,
}


class OutputFormatType(click.ParamType):
    """Custom Click parameter type for output format."""

    name = "format"

    def convert(
        self,
        value: Any,
        param: click.Parameter | None,
        ctx: click.Context | None,
    ) -> OutputFormat:
        if isinstance(value, OutputFormat):
            return value
        try:
            return OutputFormat(value.lower())
        except ValueError:
            self.fail(
                f"Invalid format '{value}'. Choose from: table, json, yaml, raw",
                param,
                ctx,
            )


OUTPUT_FORMAT = OutputFormatType()


def print_version(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    """Print version and exit."""
    if not value or ctx.resilient_parsing:
        return
    console = Console()
    console.print(f"kubekit version {__version__}")
    ctx.exit()


@click.group(cls=SuggestingGroup, context_settings=CONTEXT_SETTINGS)
@click.option(
    "-p",
    "--profile",
    metavar="NAME",
    envvar="KUBEKIT_PROFILE",
    help="Configuration profile to use",
)
@click.option(
    "-o",
    "--output",
    "output_format",
    type=OUTPUT_FORMAT,
    metavar="FORMAT",
    help="Output format: table, json, yaml, raw",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v for info, -vvv for debug)",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    help="Suppress non-essential output",
)
@click.option(
    "--no-color",
    is_flag=True,
    help="Disable colored output",
)
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True),
    metavar="FILE",
    envvar="KUBEKIT_CONFIG",
    help="Path to config file",
)
@click.option(
    "--version",
    is_flag=True,
    callback=print_version,
    expose_value=False,
    is_eager=True,
    help="Show version and exit",
)
@click.pass_context
def cli(
    ctx: click.Context,
    profile: str | None,
    output_format: OutputFormat | None,
    verbose: int,
    quiet: bool,
    no_color: bool,
    config_file: str | None,
) -> None:
    """Kubekit - kubectl companions for Karpenter clusters.

    Explains why Karpenter will not consolidate nodes, and bundles
    small helpers for dumping, flattening and listing resources.

    \b
    Examples:
        kubekit consolidation
        kubekit consolidation --pods ip-10-0-1-12.ec2.internal
        kubekit dump deploy my-app --clean
        kubekit events -A
        kubekit kubeconfig use staging | source

    \b
    Configuration:
        ~/.kubekit/config.yaml    User configuration
        ./kubekit.yaml            Project configuration
        KUBEKIT_*                 Environment variables
    """
    try:
        config = load_config(config_file)
        config.get_profile(profile)

        ctx.obj = KubekitContext(
            config=config,
            profile=profile,
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            color=not no_color,
        )

    except ConfigError as e:
        console = Console(stderr=True)
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)


def register_commands() -> None:
    """Register all commands."""
    from kubekit.commands.consolidation import consolidation
    from kubekit.commands.dump import dump
    from kubekit.commands.events import events
    from kubekit.commands.gron import gron
    from kubekit.commands.kubeconfig import kubeconfig
    from kubekit.commands.really_all import really_all
    from kubekit.commands.why_not_deleted import why_not_deleted

    cli.add_command(consolidation)
    cli.add_command(dump)
    cli.add_command(events)
    cli.add_command(gron)
    cli.add_command(kubeconfig)
    cli.add_command(really_all)
    cli.add_command(why_not_deleted)


register_commands()


@cli.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    kubekit_ctx: KubekitContext = ctx.obj
    profile = kubekit_ctx.profile
    config_data = {
        "profile": kubekit_ctx.profile_name,
        "output_format": kubekit_ctx.output_format.value,
        "verbose": kubekit_ctx.verbose,
        "k8s": {
            "kubeconfig": profile.k8s.get_kubeconfig(),
            "context": profile.k8s.get_context(),
            "namespace": profile.k8s.get_namespace(),
            "timeout": profile.k8s.timeout,
        },
        "consolidation": {
            "utilization_threshold": profile.consolidation.get_utilization_threshold(),
            "scoped_fetch_limit": profile.consolidation.scoped_fetch_limit,
            "nodeclaim_crd": profile.consolidation.nodeclaim_crd,
            "pod_local_storage": profile.consolidation.pod_local_storage,
        },
        "kubeconfig": {
            "directory": str(profile.kubeconfig.get_directory()),
            "shell": profile.kubeconfig.shell,
        },
    }
    kubekit_ctx.output.print_data(config_data, title="Current Configuration")


def main() -> None:
    """Main entry point."""
    try:
        cli()
    except KubekitError as e:
        console = Console(stderr=True)
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        console = Console(stderr=True)
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
