"""Presentation-side view model for the catalog list."""
