from . import cache, resolver

__all__ = ["cache", "resolver"]
