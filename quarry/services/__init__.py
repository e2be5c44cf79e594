"""
Domain services: collections, snippets, users and databases.
"""
