"""Backend package for the thaitax calculation service."""
