"""Tests for core: service results, request ids, system checks, health."""
