"""Ticket type (priced product) endpoints."""
