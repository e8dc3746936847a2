from flowsync.sync.bridge import SyncBridge, TextEditor

__all__ = ["SyncBridge", "TextEditor"]
