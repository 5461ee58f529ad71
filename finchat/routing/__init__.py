"""Intent dispatch."""

from finchat.routing.router import ResponseRouter, RouterConfigurationError

__all__ = [
    "ResponseRouter",
    "RouterConfigurationError",
]
