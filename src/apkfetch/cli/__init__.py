"""CLI for apkfetch."""

# Import commands to register them with the app
# These imports have side effects (registering commands with @app.command())
from apkfetch.cli.commands import status as _status_module  # noqa: F401
from apkfetch.cli.main import app, main


__all__ = ["app", "main"]
