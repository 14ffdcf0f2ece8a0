"""Revenue and order count aggregation."""
