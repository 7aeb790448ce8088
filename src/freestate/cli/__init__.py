"""Command line interface for the directory client."""
