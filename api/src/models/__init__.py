"""Data models for the FastAPI service.

This package contains the Pydantic tour schema and the response envelope.
"""
