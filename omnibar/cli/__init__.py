"""CLI module for omnibar."""
