"""Incremental build orchestrator for schema-to-code generators."""

__version__ = "0.1.0"
