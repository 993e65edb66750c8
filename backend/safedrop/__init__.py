"""SafeDrop: share a secret through a link that only opens a limited number of times."""

__version__ = "0.1.0"
