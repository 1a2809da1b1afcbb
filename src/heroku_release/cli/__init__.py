"""heroku-release command-line interface."""

from heroku_release.cli.app import app

__all__ = ["app"]
