"""ASGI entrypoint for the account authentication service."""

from .core.app_factory import create_application

app = create_application()

__all__ = ("app",)
