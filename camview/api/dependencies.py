# /camview/api/dependencies.py

from fastapi.requests import HTTPConnection

from camview.services.container import Services


def get_services(conn: HTTPConnection) -> Services:
    """
    FastAPI dependency: the service container built for this app.
    Works for both HTTP and WebSocket routes.
    """
    return conn.app.state.services
