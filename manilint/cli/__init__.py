"""Command-line interface for manilint."""
