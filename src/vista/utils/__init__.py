"""Vista utilities."""
