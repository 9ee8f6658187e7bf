# src/threadline/schemas/__init__.py
"""Pydantic schemas for the Threadline API."""
