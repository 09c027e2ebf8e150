"""Visitor testimonials with admin approval."""
