"""AI pull request reviewer."""

__version__ = "1.2.3"
