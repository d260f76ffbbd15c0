from .request_context import RequestContextMiddleware, current_request

__all__ = ["RequestContextMiddleware", "current_request"]
