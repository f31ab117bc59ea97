"""Stable API surface: typed errors, spec models and endpoints."""
