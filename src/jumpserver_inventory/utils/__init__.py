"""Shared helpers for jumpserver-inventory."""
