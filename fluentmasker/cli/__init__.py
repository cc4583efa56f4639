"""Command-line interface for FluentMasker."""
