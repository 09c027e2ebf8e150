"""Ticket booking and lifecycle endpoints."""
