"""
DataFlow Core

Connection handling, schema introspection and the streaming copy engine.
"""
