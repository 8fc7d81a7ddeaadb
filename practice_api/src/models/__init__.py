"""Data models for the FastAPI service.

This package contains Pydantic models for authentication requests and
responses, user records, token payloads and audit log entries.
"""
