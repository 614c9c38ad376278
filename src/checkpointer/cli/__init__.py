"""Checkpointer command-line interface."""
