"""
Sixi Commander

Tick-driven motion control around the armlib kinematics core.
"""

from .constants import __version__
