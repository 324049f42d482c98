"""Switch between kubeconfig files kept in one directory."""

import os
import shlex
from pathlib import Path
from typing import Any

import click
import yaml

from kubekit.core.context import pass_context, KubekitContext
from kubekit.core.logging import get_logger
from kubekit.core.suggestions import format_suggestions, suggest_names

logger = get_logger(__name__)

DEFAULT_KUBECONFIG = "~/.kube/config"


def read_kubeconfig(path: Path) -> dict[str, Any] | None:
    """Parse a file if it is a kubeconfig, else None."""
    try:
        with open(path) as f:
            content = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.debug(f"Skipping {path}: {e}")
        return None
    if not isinstance(content, dict):
        return None
    if content.get("kind") != "Config" and "clusters" not in content:
        return None
    return content


def discover_kubeconfigs(directory: Path) -> dict[str, Path]:
    """Kubeconfig files in a directory, keyed by file name."""
    if not directory.is_dir():
        return {}
    found = {}
    for path in sorted(directory.iterdir()):
        if path.is_file() and read_kubeconfig(path) is not None:
            found[path.name] = path
    return found


def active_kubeconfig() -> Path:
    """The kubeconfig kubectl would use now (first entry of $KUBECONFIG)."""
    value = os.environ.get("KUBECONFIG")
    if value:
        return Path(value.split(os.pathsep)[0]).expanduser()
    return Path(DEFAULT_KUBECONFIG).expanduser()


def export_statement(path: Path, shell: str) -> str:
    """Shell statement that points KUBECONFIG at a file."""
    quoted = shlex.quote(str(path))
    if shell == "fish":
        return f"set -gx KUBECONFIG {quoted}"
    return f"export KUBECONFIG={quoted}"


def _same_file(a: Path, b: Path) -> bool:
    try:
        return a.resolve() == b.resolve()
    except OSError:
        return False


@click.group("kubeconfig")
def kubeconfig() -> None:
    """Manage several kubeconfig files.

    \b
    Examples:
        kubekit kubeconfig list
        kubekit kubeconfig use staging | source
        eval "$(kubekit kubeconfig use prod --shell bash)"
    """
    pass


@kubeconfig.command("list")
@pass_context
def list_configs(ctx: KubekitContext) -> None:
    """List kubeconfig files and their contexts."""
    directory = ctx.profile.kubeconfig.get_directory()
    configs = discover_kubeconfigs(directory)
    if not configs:
        ctx.output.print_warning(f"No kubeconfig files found in {directory}")
        return

    active = active_kubeconfig()
    rows = []
    for name, path in configs.items():
        content = read_kubeconfig(path) or {}
        rows.append(
            {
                "active": "*" if _same_file(path, active) else "",
                "name": name,
                "current_context": content.get("current-context") or "",
                "contexts": ", ".join(
                    c.get("name", "") for c in content.get("contexts") or [] if isinstance(c, dict)
                ),
            }
        )
    ctx.output.print_data(rows, headers=["active", "name", "current_context", "contexts"])


@kubeconfig.command("current")
@pass_context
def current(ctx: KubekitContext) -> None:
    """Print the active kubeconfig file."""
    ctx.output.print_text(str(active_kubeconfig()))


@kubeconfig.command("use")
@click.argument("name")
@click.option(
    "--shell",
    type=click.Choice(["fish", "bash", "zsh"]),
    default=None,
    help="Shell syntax of the printed statement",
)
@pass_context
def use(ctx: KubekitContext, name: str, shell: str | None) -> None:
    """Print the statement that activates kubeconfig NAME.

    The output must be evaluated by the calling shell, since a command
    cannot change its parent's environment.
    """
    settings = ctx.profile.kubeconfig
    configs = discover_kubeconfigs(settings.get_directory())

    path = None
    for candidate in (name, f"{name}.yaml", f"{name}.yml", f"config-{name}"):
        if candidate in configs:
            path = configs[candidate]
            break

    if path is None:
        message = f"No kubeconfig named '{name}' in {settings.get_directory()}"
        hint = format_suggestions(suggest_names(name, list(configs)), markup=False)
        ctx.output.print_error(f"{message}. {hint}" if hint else message)
        raise click.Abort()

    ctx.output.print_text(export_statement(path, shell or settings.shell))
