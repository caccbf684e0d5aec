#!/usr/bin/env python3

"""
Package initialization for rig_listener.core
Radio state and settings. The Bridge orchestrator lives in
rig_listener.core.bridge, which depends on the io package.

Part of the Rig-Listener project.
"""

from rig_listener.core.radio_state import RadioState
from rig_listener.core.settings import Settings

__all__ = ['RadioState', 'Settings']
