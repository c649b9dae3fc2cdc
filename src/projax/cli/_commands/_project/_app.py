"""Cyclopts App definition for project commands."""

from cyclopts import App

app = App(
    name="project",
    help="Register and manage projects",
    help_on_error=True,
)
