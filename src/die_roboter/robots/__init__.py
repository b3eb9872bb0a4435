"""Robot variants with their pivot and collision tables."""

from .lekiwi import LeKiwi
from .so101 import SO101

ROBOTS = {
    "SO101": SO101,
    "LeKiwi": LeKiwi,
}

__all__ = ["SO101", "LeKiwi", "ROBOTS"]
