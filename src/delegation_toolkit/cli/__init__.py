"""Command-line interface for delegation-toolkit."""
