"""Built-in login flow plugins."""
