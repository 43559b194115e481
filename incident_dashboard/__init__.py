"""Incident dashboard: incident CRUD, webhook ingestion, realtime change feed and dashboard view state."""
