"""CLI command groups for famtrack."""
