"""vibepatch CLI package."""
