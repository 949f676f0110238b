"""Static provisioning data."""
