"""Domain layer: catalog model, presence and synchronisation services."""
