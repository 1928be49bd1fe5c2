"""Application services for the ns8 CLI."""
