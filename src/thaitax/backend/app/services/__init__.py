"""Calculation, batch and administration services."""
