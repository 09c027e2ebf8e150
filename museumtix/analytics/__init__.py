"""Admin analytics: stored entries and a ticket sales summary."""
