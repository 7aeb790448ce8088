"""Shared utilities: errors, logging, constants, cancellation and results."""
