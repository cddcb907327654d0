"""FastAPI/Starlette bindings: transport, dependencies, middleware, routes."""
