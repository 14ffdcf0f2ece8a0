"""User lookups."""
