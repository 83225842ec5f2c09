"""
Quest engine services — generation, progression, sweep, popups, storage.

Pure Python + asyncio + Pydantic, no UI imports. Popups reach the screen
only through the callbacks the caller hands to QuestSession.
"""
