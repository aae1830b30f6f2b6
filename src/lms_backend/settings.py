import os
import threading

class BackendSettings:
    _instance = None
    _lock = threading.Lock()

    def __init__(self):
        self.DEBUG_MODE = os.environ.get("DEBUG_MODE","development")
        self.LOG_LEVEL = os.environ.get("LOG_LEVEL","INFO").upper()
        self.DEFAULT_SECTION_CAPACITY = int(os.environ.get("DEFAULT_SECTION_CAPACITY", "80"))
        # Notifications are fire-and-forget; disabling only silences the sender
        self.ENABLE_NOTIFICATIONS = os.environ.get("ENABLE_NOTIFICATIONS", "true").lower() in ["true", "1", "yes", "on"]

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(BackendSettings, cls).__new__(cls)
        return cls._instance

settings = BackendSettings()
