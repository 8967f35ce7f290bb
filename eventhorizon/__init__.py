"""A CQRS and event sourcing toolkit."""

__version__ = "0.1.0"