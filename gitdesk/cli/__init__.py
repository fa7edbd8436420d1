"""Command-line interface for gitdesk."""
