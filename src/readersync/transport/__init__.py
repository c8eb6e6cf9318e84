"""Remote sync transport.

Usage:
    from readersync.transport import Credentials, get_transport

    transport = get_transport(settings)
    snapshot = await transport.get_annotations(credentials, digest)
"""

from readersync.transport.bounded import BoundedTransport
from readersync.transport.factory import clear_transport_cache, get_transport
from readersync.transport.models import AnnotationsPushResult, Credentials
from readersync.transport.protocol import SyncTransportProtocol

__all__ = [
    "AnnotationsPushResult",
    "BoundedTransport",
    "Credentials",
    "SyncTransportProtocol",
    "clear_transport_cache",
    "get_transport",
]
