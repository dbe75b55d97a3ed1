"""simpack - packages runnable web simulations into distributable bundles.

The entry point for programmatic use is
:class:`simpack.build.orchestrator.RunnableBuilder`; the ``simpack`` console
script wraps it for command-line builds.
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
