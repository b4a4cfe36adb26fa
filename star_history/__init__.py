"""GitHub star-history aggregation engine."""
