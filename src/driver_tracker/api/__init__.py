"""HTTP routers, schemas and middleware."""
