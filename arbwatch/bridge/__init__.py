"""Bridge layer between the ingest side and live feed consumers.

Modules
-------
transport
    ``NotificationBridge`` queues ``PushNotification`` messages (SQLite or
    in-memory) for best-effort delivery after a push is written.
"""
