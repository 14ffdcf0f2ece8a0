"""Vehicle stock reservation and restoration."""
