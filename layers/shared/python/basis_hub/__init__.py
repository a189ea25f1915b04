"""Shared library for the BASIS training functions.

This code is packaged as a Lambda Layer (Python) and imported by every function
under ``functions/``.

Design goals:
- Keep dependencies small (stdlib + boto3 + jsonschema).
- Keep DB access behind the RDS Data API helper in ``rds_data``.
- Every function speaks the same JSON envelope (see ``http``).
"""

__version__ = "1.0.0"
