"""Roblox player bootstrapper: install, update, verify, apply mods and FastFlags, launch."""

__version__ = "0.1.2"