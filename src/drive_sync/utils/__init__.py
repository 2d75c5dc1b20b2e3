"""Shared utilities: structured logging and log tailing."""
