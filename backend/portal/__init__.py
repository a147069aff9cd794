"""
Campus portal backend: Google Workspace sessions and provider clients.
"""
__version__ = "1.0.0"
