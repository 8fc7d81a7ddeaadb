"""Business logic services.

This package contains service classes that implement authentication and
the compliance domain on top of the repositories, and provide high-level
functionality to API endpoints.
"""
