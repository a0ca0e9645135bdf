"""
Core utilities shared across the Accounts API.

This package hosts configuration, logging and security (password hashing)
helpers. Services and routers depend on these primitives instead of reading
os.environ or configuring handlers themselves.
"""
