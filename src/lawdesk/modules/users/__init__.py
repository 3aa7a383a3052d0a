"""User accounts of a tenant namespace."""
