"""Stubbed payment processing."""
