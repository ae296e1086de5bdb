"""CLI commands."""

APPCOURIER_YAML = "appcourier.yaml"
