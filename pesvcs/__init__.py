"""A small content-addressed version control system: object store, trees, index, commits and the pes command."""

__version__ = "0.1.0"

__all__ = ["__version__"]