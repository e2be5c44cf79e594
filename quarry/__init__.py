"""
Quarry

Native query snippets organized in permissioned collections, plus the
application-database plumbing and serialization specs around them.
"""

__version__ = "0.4.0"
