"""Unit tests for the core substrate (RLP, records, KV store, config, errors)."""
