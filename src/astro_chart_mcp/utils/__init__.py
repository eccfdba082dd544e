"""Chart engine building blocks."""
