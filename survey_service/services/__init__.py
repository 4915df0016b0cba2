"""Service layer: form rendering, aggregation, editing, auth and sync."""
