"""HTTP routers for the matching service."""
