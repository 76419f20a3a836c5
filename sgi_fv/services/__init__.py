"""Domain services: orchestration over repositories and view aggregates."""
