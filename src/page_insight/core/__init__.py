"""Shared data types and the exception hierarchy."""
