"""
Storage provider implementations.
"""
