"""HTTP layer: application factory, routers, envelope and error handlers."""
