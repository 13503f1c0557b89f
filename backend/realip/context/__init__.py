"Request-scoped state and the middleware that populates it."

from .state import RequestIPContext, get_request_ip_context  # noqa: F401
