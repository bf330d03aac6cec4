"""Command-line interface for fdb-exporter."""
