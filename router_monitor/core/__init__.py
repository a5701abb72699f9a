"""Core module - domain types and raw snapshot validation."""
