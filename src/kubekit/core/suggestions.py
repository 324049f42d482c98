"""Suggestion utilities for the 'did you mean?' feature."""

from difflib import get_close_matches
from typing import Sequence

import click


def suggest_names(
    typo: str,
    candidates: Sequence[str],
    n: int = 3,
    cutoff: float = 0.6,
) -> list[str]:
    """Find names similar to a typo.

    Args:
        typo: The mistyped command or resource name
        candidates: Known names
        n: Maximum number of suggestions
        cutoff: Similarity threshold (0-1)

    Returns:
        List of similar names
    """
    return get_close_matches(typo, candidates, n=n, cutoff=cutoff)


def format_suggestions(suggestions: list[str], markup: bool = True) -> str:
    """Format suggestions for display.

    Args:
        suggestions: List of suggested names
        markup: Wrap names in Rich markup

    Returns:
        Formatted string with suggestions
    """
    if not suggestions:
        return ""

    def fmt(name: str) -> str:
        return f"[cyan]{name}[/cyan]" if markup else name

    if len(suggestions) == 1:
        return f"Did you mean: {fmt(suggestions[0])}?"

    formatted = ", ".join(fmt(s) for s in suggestions[:-1])
    return f"Did you mean: {formatted} or {fmt(suggestions[-1])}?"


class SuggestingGroup(click.Group):
    """Click Group that suggests similar commands on errors."""

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        """Resolve command with suggestions on failure."""
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            if args and "No such command" in str(e):
                cmd_name = args[0]
                suggestions = suggest_names(cmd_name, list(self.commands.keys()))
                if suggestions:
                    suggestion_text = format_suggestions(suggestions, markup=False)
                    raise click.UsageError(
                        f"No such command '{cmd_name}'. {suggestion_text}",
                        ctx=ctx,
                    )
            raise
