"""Domain layer: release model, reconciliation rules and the edit transaction."""
