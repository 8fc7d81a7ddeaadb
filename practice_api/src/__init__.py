"""FastAPI service for legal practice management.

This package provides the REST API behind the practice management
frontend: authentication, one CRUD resource per practice feature, the
compliance and risk management domain, and the smoke runners that check
the whole surface in parallel.
"""

__version__ = "1.0.0"
