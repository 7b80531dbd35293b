"""Core domain package for eskertu.

Core contains date matching, dispatch, and scheduling logic without any
Telegram or storage-specific code, keeping the reminder engine portable.
"""
