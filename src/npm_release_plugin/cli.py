"""
Command line interface for the npm release plugin.

Also exposed as a plugin for host CLIs under the 'npm-release' namespace.
"""

import typer

from .commands import lifecycle

app = typer.Typer(
    help="Publish npm packages as part of a release",
    no_args_is_help=True,
)

app.command(name="verify")(lifecycle.verify)
app.command(name="prepare")(lifecycle.prepare)
app.command(name="publish")(lifecycle.publish)
app.command(name="release")(lifecycle.release)


def plugin():
    """Entry point for host CLIs.

    Registered in pyproject.toml under [project.entry-points."fenix.plugins"].

    Returns:
        typer.Typer: The Typer app with all plugin commands
    """
    return app
