"""Message digests: algorithm descriptors and cloneable contexts."""

from __future__ import annotations

from .algorithm import DigestAlgorithm
from .context import DigestContext, DigestState, digest

__all__ = ["DigestAlgorithm", "DigestContext", "DigestState", "digest"]
