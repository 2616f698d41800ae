"""Per-module operations: each takes a NinaClient as its first argument."""

from nina_sdk.resources import exchanges, hubs, posts, releases

__all__ = ["exchanges", "hubs", "posts", "releases"]
