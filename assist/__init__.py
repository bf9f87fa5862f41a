"""
discord-assist: owner-only Discord bot with capability plugins and media/server notifications.
"""

__version__ = "0.1.0"
