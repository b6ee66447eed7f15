"""Shared application components for request handlers."""

from fastapi import Request

from vittas.orchestrator import AppComponents, create_app_components


def get_components(request: Request) -> AppComponents:
    """
    Components attached to the app, built on first use.

    Tests pass pre-built components to ``create_app`` instead.
    """
    components = getattr(request.app.state, "components", None)
    if components is None:
        components = create_app_components()
        request.app.state.components = components
    return components
