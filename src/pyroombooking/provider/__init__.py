"""Payment status providers."""
