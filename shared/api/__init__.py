"""Cross-cutting API routers."""
