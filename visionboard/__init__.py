"""
Vision Board - Source Package

A personal vision board: savings goals ("wishes") with progress tracking,
AI-generated imagery and short action plans.

DESIGN PRINCIPLES:
1. The board works offline - no API key means curated images and a generic plan
2. AI is best-effort - generation failures degrade, they never break an action
3. One owner for the wish collection, one place where it is persisted
4. Invalid input is rejected before any network call
"""

__version__ = "1.0.0"
__author__ = "Vision Board Team"
