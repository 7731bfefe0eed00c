"""Typer sub-command groups for the learnd CLI."""
