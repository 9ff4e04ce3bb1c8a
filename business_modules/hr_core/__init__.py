"""HR Core module: employee directory and organisation structure."""
