"""
Layers package - Application endpoints of a simulated session.

Contains implementations for:
- Message source (sending application)
- Message sink (receiving application)
- Delivery verification
"""

from .application_layer import MessageSource, MessageSink, DeliveryVerifier

__all__ = [
    'MessageSource',
    'MessageSink',
    'DeliveryVerifier'
]
