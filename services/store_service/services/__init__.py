"""Store service business logic."""
