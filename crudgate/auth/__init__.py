"""API-key authentication and scope authorization."""
