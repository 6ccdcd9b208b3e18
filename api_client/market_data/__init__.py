"""Market data gateways."""
