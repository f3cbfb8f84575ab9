"""HTTP routers for progression."""
