# src/monolith/registry.py
"""Process-wide instance counter for SVG namespacing.

Every ScalableVectorGraphic takes a number from a counter when it is
constructed. The number feeds the namespacing suffix so that two instances
built from the same source text still produce different IDs and classes.

The default counter is created at import time and never torn down. Tests
construct their own InstanceCounter to control the starting value.
"""

import threading


class InstanceCounter:
    """Thread-safe, monotonically increasing counter."""

    def __init__(self, start: int = 0) -> None:
        self._value = start
        self._lock = threading.Lock()

    def next(self) -> int:
        """Increment the counter and return the new value."""
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        """The most recently issued value."""
        return self._value


#: Shared counter used when no counter is injected
INSTANCE_COUNTER = InstanceCounter()
