"""
Database backend implementations.
"""
