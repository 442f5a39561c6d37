"""Domain layer: catalog model, matching and persistence services."""
