"""Application services and their lookup from the running app."""

from flask import current_app


def get_service(name: str):
    """Return a service registered on the current app by ``create_app``."""

    return current_app.extensions[name]
