"""
bodyosc - body/face tracking to OSC bridge
"""
__version__ = "1.0.0"
