"""
Network module
==============

OSC/UDP dispatch of encoded payloads.
"""
from .osc_dispatcher import Destination, OscDispatcher, build_message

__all__ = ['Destination', 'OscDispatcher', 'build_message']
