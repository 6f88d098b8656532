"""Bounded contexts of the paperwright build pipeline."""
