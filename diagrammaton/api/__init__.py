"""HTTP API: routers, dependencies and error mapping."""
