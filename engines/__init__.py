"""Pluggable backends for Stepdown."""
