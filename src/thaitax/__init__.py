"""Personal income tax calculation service."""
