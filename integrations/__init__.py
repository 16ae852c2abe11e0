"""
External integrations: host platform and blob storage.
"""
