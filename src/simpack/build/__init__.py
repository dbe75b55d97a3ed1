"""
Build system components for simpack.

This package provides the runnable build pipeline:
- Brand policies and build requests
- Code transformation and minification (through Node tools)
- Asset embedding (preloads, splash image)
- Output target enumeration and build orchestration
"""

from .brands import Brand, BrandPolicy, get_brand_policy
from .build_context import BuildRequest
from .orchestrator import BuildResult, RunnableBuilder

__all__ = [
    "Brand",
    "BrandPolicy",
    "BuildRequest",
    "BuildResult",
    "RunnableBuilder",
    "get_brand_policy",
]
