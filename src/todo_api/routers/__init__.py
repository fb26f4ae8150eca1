"""HTTP routers mounted by the application."""
