"""Accounts API: user accounts keyed by phone number over a file-per-record store."""
