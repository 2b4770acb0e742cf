"""fae: run a project entry point from its declarative manifest."""

__version__ = "0.1.0"

__all__ = ["__version__"]
