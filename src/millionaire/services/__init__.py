"""Service modules for the terminal CLI and the web API."""

from . import cli, web_api, web_session

__all__ = ["cli", "web_api", "web_session"]
