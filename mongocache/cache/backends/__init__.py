"""
MongoCache - Cache Backends

The MongoDB backend is imported from its module directly (or lazily via
factory.py) so the package imports without the driver installed.
"""
