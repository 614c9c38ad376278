"""Shared utilities and constants for Checkpointer."""
