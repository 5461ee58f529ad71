"""Base exception for finchat.

Concrete errors live next to the code that raises them
(registry, router, data sources) and all derive from FinchatError.
"""


class FinchatError(Exception):
    """Base exception for all finchat errors."""
    pass
