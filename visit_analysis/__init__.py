"""Visit scoring service for dealership customer visits."""

__version__ = "1.0.0"
