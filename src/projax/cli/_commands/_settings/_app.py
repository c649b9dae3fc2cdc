"""Cyclopts App definition for settings commands."""

from cyclopts import App

app = App(
    name="settings",
    help="Read and write registry settings",
    help_on_error=True,
)
