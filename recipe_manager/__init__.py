"""Recipe, ingredient and usage-report backend."""

__version__ = "0.1.0"
