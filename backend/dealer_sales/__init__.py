"""Dealer sales order engine: orders, inventory, payments and deliveries."""

__version__ = "1.0.0"
