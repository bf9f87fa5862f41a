from .arr import ArrClient
from .unraid import UnraidClient

__all__ = ["ArrClient", "UnraidClient"]
