"""Shared helpers for the API and service layers."""
