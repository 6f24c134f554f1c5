"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Session sidebar with new/select/rename/delete
    - Message display with streaming updates
    - Input box, model selector and enter-key behaviour
    - Stop button for an in-flight reply

Contains no chat state logic. Forwards every user intent to
``src.chat.ChatController`` and re-renders on its notifications.
"""
