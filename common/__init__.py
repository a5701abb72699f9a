"""Shared settings and database engine."""
