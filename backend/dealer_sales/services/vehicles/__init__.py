"""Vehicle catalog: listing, maintenance and row-locked reads."""
