"""Pydantic models for records and the derived process graph."""
