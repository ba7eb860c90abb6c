"""Helpers shared across miniblog modules."""
