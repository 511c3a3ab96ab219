"""Collaborative map services: store, token catalog, broadcaster, coordinator.

HTTP routes and socket handlers go through ``MapCoordinator``; transport
concerns stay out of this package.
"""

from .broadcaster import MapBroadcaster, SocketConnection
from .coordinator import MapCoordinator, MapView, get_coordinator

__all__ = ['MapBroadcaster', 'SocketConnection', 'MapCoordinator', 'MapView', 'get_coordinator']
