"""Command-line interface for caiide-memory."""
