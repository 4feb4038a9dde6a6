"""Business services: aggregation, reconciliation, collection and reporting."""
