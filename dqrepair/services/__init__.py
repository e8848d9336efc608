"""Ingestion/repair engine, evidence indices and run orchestration."""
