"""Cash-flow transactions."""
