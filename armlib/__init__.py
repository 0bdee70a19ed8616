"""
Sixi arm support library.

Holds the pure kinematics core used by the commander.
"""
