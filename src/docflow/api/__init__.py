"""HTTP routers for DocFlow."""
