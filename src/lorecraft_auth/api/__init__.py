"""HTTP surface: the auth gate middleware and versioned routers."""
