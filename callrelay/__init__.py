"""
callrelay - relays phone-system call webhooks to SMS notifications.
"""
__version__ = "2.0.0"
