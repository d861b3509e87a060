"""
MongoCache - Capability Probes

Driver availability checks. Probes are plain callables so adapters can take
a substitute in tests instead of consulting process-wide state.
"""

import importlib.util
from collections.abc import Callable

DriverProbe = Callable[[], bool]


def driver_available(package: str = "pymongo") -> bool:
    """Return True if the MongoDB driver can be imported; never raises."""
    try:
        return importlib.util.find_spec(package) is not None
    except (ImportError, ValueError):
        return False
