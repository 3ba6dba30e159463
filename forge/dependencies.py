from fastapi import Request

from forge.services.studio import Studio


def get_studio(request: Request) -> Studio:
    """Return the studio stored on app state during lifespan."""
    return request.app.state.studio
