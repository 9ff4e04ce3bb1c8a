"""Document management module."""
