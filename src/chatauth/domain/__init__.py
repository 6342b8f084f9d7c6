"""Domain layer: entities and identity workflows."""
