"""Tests for discovery record persistence and the peerdb-dht CLI."""
