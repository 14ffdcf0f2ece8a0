"""Business services of the dealer sales engine."""
