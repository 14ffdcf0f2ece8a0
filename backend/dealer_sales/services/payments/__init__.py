"""Recording of payment outcomes reported by the payment gateway."""
