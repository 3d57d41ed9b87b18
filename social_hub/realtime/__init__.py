"""Realtime infrastructure (Socket.IO).

Presence tracking and call signaling live here, next to the broadcast helpers
used by the posts, stories and accounts APIs, so everything shares one socket
server.
"""
