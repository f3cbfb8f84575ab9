"""Authentication seam for API routes."""
