"""
Visualization settings helpers.
"""
