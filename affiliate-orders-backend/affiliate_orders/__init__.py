"""Affiliate order collection & reconciliation backend."""
