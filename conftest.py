"""Root conftest so the top-level modules import when pytest runs from a checkout."""
