from app.middleware.request_context import RequestContextMiddleware, client_identifier

__all__ = ["RequestContextMiddleware", "client_identifier"]
