"""Realtime infrastructure (Socket.IO).

Connection registry, channel subscriptions, message fan-out and ephemeral
typing/presence state for live chat connections.
"""
