"""
Persistence adapters.

These modules encapsulate how records are stored and retrieved (today one JSON
file per record). Services depend on the store interface rather than touching
the data directory.
"""
