"""Application services for the account and authentication use cases."""
