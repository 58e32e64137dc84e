"""
Monitoring module
=================

Frame-rate and uptime monitoring utilities.
"""
from .frame_timer import FrameTimer

__all__ = ['FrameTimer']
