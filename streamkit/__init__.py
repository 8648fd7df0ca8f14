"""A JSON codec, functional configuration options, error collectors and concurrency utilities for message streams."""

__version__ = "0.1.0"