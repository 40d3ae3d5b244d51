"""Incremental generation: staleness checks, invocation and marker bookkeeping."""
