"""Local tooling for the BASIS functions: dev server, handler invocation, DB init."""

__version__ = "1.0.0"
