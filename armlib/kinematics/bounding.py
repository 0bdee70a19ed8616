"""
Bounding Volume Builder

Derives world-space collision proxies (segment plus radius) from a
committed keyframe. Pure and stateless; callers rebuild every tick.

Six-axis layout, one proxy per link:
    0 shoulder pivot   1 bicep   2 elbow pivot
    3 ulna             4 wrist pivot   5 finger
Pivots are short segments across the joint along the base right axis,
half a radius to each side.
"""

from collections import namedtuple
from typing import List, Sequence

import numpy as np

from .keyframe import Keyframe

CollisionProxy = namedtuple('CollisionProxy', ['name', 'start', 'end', 'radius'])

# Base right axis expressed in the arm base frame (world = ... - right * y)
LOCAL_RIGHT = np.array([0.0, -1.0, 0.0])


def _pivot(keyframe: Keyframe, name: str, center: np.ndarray, radius: float) -> CollisionProxy:
    offset = LOCAL_RIGHT * (radius / 2.0)
    return _segment(keyframe, name, center + offset, center - offset, radius)


def _segment(keyframe: Keyframe, name: str, start: np.ndarray, end: np.ndarray, radius: float) -> CollisionProxy:
    base = keyframe.base
    return CollisionProxy(name, base.to_world(start), base.to_world(end), float(radius))


def build_bounding_volumes(keyframe: Keyframe, radii: Sequence[float]) -> List[CollisionProxy]:
    """
    Build the collision proxies for a keyframe.

    Args:
        keyframe: Committed keyframe (positions in the arm base frame)
        radii: One radius per proxy: 6 for an arm with an ulna, 3 for the
               simple arm (bicep, forearm, finger); empty gives no proxies

    Returns:
        List of CollisionProxy in world coordinates
    """
    if not radii:
        return []

    if keyframe.ulna is not None:
        if len(radii) != 6:
            raise ValueError(f"Six-axis bounding volumes need 6 radii, got {len(radii)}")
        return [
            _pivot(keyframe, 'shoulder', keyframe.shoulder, radii[0]),
            _segment(keyframe, 'bicep', keyframe.shoulder, keyframe.elbow, radii[1]),
            _pivot(keyframe, 'elbow', keyframe.elbow, radii[2]),
            _segment(keyframe, 'ulna', keyframe.elbow, keyframe.wrist, radii[3]),
            _pivot(keyframe, 'wrist', keyframe.wrist, radii[4]),
            _segment(keyframe, 'finger', keyframe.wrist, keyframe.finger, radii[5]),
        ]

    if len(radii) != 3:
        raise ValueError(f"Simple arm bounding volumes need 3 radii, got {len(radii)}")
    return [
        _segment(keyframe, 'bicep', keyframe.shoulder, keyframe.elbow, radii[0]),
        _segment(keyframe, 'forearm', keyframe.elbow, keyframe.wrist, radii[1]),
        _segment(keyframe, 'finger', keyframe.wrist, keyframe.finger, radii[2]),
    ]
