"""
Hetzner console core.

Server-side core of a Hetzner Cloud administration console running as an
extension inside a host platform: session verification, input validation,
credential resolution, the upstream API gateway, local assignment and note
storage, and the monthly cost estimate.
"""

__version__ = "0.1.0"
