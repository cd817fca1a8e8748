"""Access/refresh token issuance and validation."""
