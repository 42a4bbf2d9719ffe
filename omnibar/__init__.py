"""omnibar-core - query interpretation for a command-palette launcher."""

__version__ = "0.3.0"
__logo__ = "⌘"
