"""Command-line interface for appcourier."""
