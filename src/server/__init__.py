"""REST binding of the content store."""

from sitedash.server.app import create_app, run

__all__ = ["create_app", "run"]
