"""Countries gateway service."""
