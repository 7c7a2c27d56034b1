"""API route factories."""
