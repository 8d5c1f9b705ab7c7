"""
Renotefy: notes with sharing, public publishing, templates and AI helpers.
"""

__version__ = "1.0.0"
