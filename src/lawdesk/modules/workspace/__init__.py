"""Business records of a tenant namespace."""
