"""quotegraph: quote and mention reference graph over GitHub issue comments."""

__version__ = "0.1.0"
