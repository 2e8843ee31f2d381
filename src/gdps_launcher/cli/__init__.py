"""Command-line interface for GDPS Launcher."""
