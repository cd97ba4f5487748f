"""Built-in catalog data."""
