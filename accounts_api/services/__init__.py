"""
High-level use cases for the Accounts API.

Each service module orchestrates repositories and domain rules to implement
business behaviour. Routers call these services instead of touching the
record store directly.
"""
