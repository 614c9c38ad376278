"""Shared pieces of the CLI commands: context, options and error handling."""
