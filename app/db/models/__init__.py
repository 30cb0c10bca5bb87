# Models package (re-export feature modules for stable imports)
from .health.doctor import Doctor

__all__ = [
    "Doctor",
]
