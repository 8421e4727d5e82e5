"""Small helpers shared across moneta modules."""
