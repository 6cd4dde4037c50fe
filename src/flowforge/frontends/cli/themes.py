"""Themes for the FlowForge terminal output.

Style names match the ones the projector hands out (success, error,
running, pending) so view models can be drawn without translation.
"""

from rich.theme import Theme


def create_theme(
    *,
    # Status styles
    success: str = "bold green",
    error: str = "bold red",
    running: str = "bold yellow",
    pending: str = "bright_black",
    neutral: str = "cyan",
    # Layout
    title: str = "bold cyan",
    label: str = "bold",
    border: str = "dim",
    muted: str = "dim",
    # Step details
    output_text: str = "white",
    thinking: str = "italic yellow",
    criteria: str = "magenta",
    # Notifications
    info: str = "bold blue",
) -> Theme:
    """Create a theme with the given styles.

    Every style the renderers use is defined, so a partial override
    never leaves a name unresolved.
    """
    return Theme(
        {
            # Statuses
            "success": success,
            "error": error,
            "running": running,
            "pending": pending,
            "neutral": neutral,
            # Run statuses, used for the header badge
            "status.completed": success,
            "status.failed": error,
            "status.running": running,
            "status.pending": pending,
            # Layout
            "title": title,
            "label": label,
            "border": border,
            "muted": muted,
            # Step details
            "output": output_text,
            "thinking": thinking,
            "criteria": criteria,
            # Notifications
            "info": info,
        }
    )


# =============================================================================
# Built-in Themes
# =============================================================================

DEFAULT_THEME = create_theme()

# No colors, for logs and dumb terminals
MONO_THEME = create_theme(
    success="bold",
    error="bold reverse",
    running="bold",
    pending="dim",
    neutral="none",
    title="bold",
    label="bold",
    border="dim",
    muted="dim",
    output_text="none",
    thinking="italic",
    criteria="none",
    info="bold",
)

THEMES: dict[str, Theme] = {
    "default": DEFAULT_THEME,
    "mono": MONO_THEME,
}


def get_theme(name: str) -> Theme:
    """Get a theme by name, or DEFAULT_THEME if the name is unknown."""
    return THEMES.get(name.lower(), DEFAULT_THEME)
