"""vodstream: subscription video-streaming backend."""

__version__ = "0.1.0"
