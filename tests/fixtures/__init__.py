"""Shared test fixtures for configplus."""
