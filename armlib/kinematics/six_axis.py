"""
Six-Axis Solver for the Sixi Arm

Closed-form FK/IK for a 6-joint arm whose bicep and forearm are L-shaped:
each bone carries a sideways (Y) offset as well as its length (Z), so the
joint-to-joint spans are not collinear with the joint axes. Instead of DH
angle accumulation, an explicit local frame is built at every joint.

Joint layout:
- J0: base yaw about the vertical axis
- J1: shoulder pitch
- J2: elbow pitch
- J3: ulna roll about the forearm
- J4: wrist bend
- J5: finger roll

IK picks between algebraically valid solutions by continuity with the
previous keyframe:
- base azimuth: the wrist heading or its opposite (arm leaning over its base)
- elbow: the two circle-circle intersection points
- ulna: (J3, J4, J5) or (J3+180, -J4, J5+180)

Author: Sixi Team
Date: 2025-02-05
"""

import logging
import math
from typing import Optional, Sequence, Tuple

import numpy as np

from .dimensions import SIXI_DIMENSIONS, SixAxisDimensions
from .errors import Singular, Unreachable
from .keyframe import IDENTITY_BASE, JointFrame, Keyframe, as_vector, unit
from .orientation import GLOBAL_UP, decompose
from .solver import ArmSolver, IKResult, ik_failure, unwrap_toward

logger = logging.getLogger(__name__)


def _in_plane(sx: np.ndarray, sz: np.ndarray, angle_rad: float) -> np.ndarray:
    """Unit vector at angle_rad in the arm plane spanned by sx (0 rad) and sz (90 deg)."""
    return sx * math.cos(angle_rad) + sz * math.sin(angle_rad)


class SixAxisSolver(ArmSolver):
    """
    Analytic solver for the Sixi six-axis arm.

    Usage:
        solver = SixAxisSolver(SIXI_DIMENSIONS)
        home = solver.home_keyframe()
        result = solver.inverse_kinematics(home.finger + [2, 0, 0], home.forward, home.right, home)
        if result.success:
            print(result.keyframe.angles)
    """

    def __init__(self, dimensions: SixAxisDimensions = SIXI_DIMENSIONS, logger: Optional[logging.Logger] = None):
        if not isinstance(dimensions, SixAxisDimensions):
            raise TypeError(f"SixAxisSolver needs SixAxisDimensions, got {type(dimensions).__name__}")
        super().__init__(dimensions, logger)

    @property
    def shoulder(self) -> np.ndarray:
        return np.array([0.0, 0.0, self.dimensions.shoulder_height])

    # ========================================================================
    # Forward Kinematics
    # ========================================================================

    def forward_kinematics(self, angles: Sequence[float], previous: Optional[Keyframe] = None) -> Keyframe:
        """
        Joint angles (degrees) to a full keyframe.

        Args:
            angles: Six joint angles in degrees
            previous: Supplies the base transform and the gimbal fallback
                      for the U/V/W decomposition

        Returns:
            Keyframe with positions, finger basis and U/V/W filled in
        """
        dims = self.dimensions
        angles = self._check_joint_count(angles)
        a0, a1, a2, a3, a4, a5 = (math.radians(a) for a in angles)

        # Shoulder frame: X points along the arm plane, Z is vertical
        sx = np.array([math.cos(a0), math.sin(a0), 0.0])
        sz = GLOBAL_UP.copy()
        sy = np.cross(sx, sz)
        shoulder = self.shoulder

        # Bicep frame, then the L-shaped bicep offset
        bz = _in_plane(sx, sz, math.pi - a1)
        bx = np.cross(bz, sy)
        elbow = shoulder + bx * dims.shoulder_to_elbow_y + bz * dims.shoulder_to_elbow_z

        # Elbow frame, then the L-shaped forearm offset
        ez = bz * math.cos(math.pi - a2) + bx * math.sin(math.pi - a2)
        ex = np.cross(ez, sy)
        ulna = elbow + ex * dims.elbow_to_ulna_y + ez * dims.elbow_to_ulna_z

        # Ulna roll
        uz = ez
        ux = ex * math.cos(a3) - sy * math.sin(a3)
        uy = np.cross(ux, uz)
        wrist = ulna + uz * dims.ulna_to_wrist_z

        # Wrist bend gives the finger direction
        fz = uz * math.cos(a4) + ux * math.sin(a4)
        finger = wrist + fz * dims.tool_length

        # Finger roll
        wx = np.cross(uy, fz)
        fx = wx * math.cos(a5) - uy * math.sin(a5)

        prev_uvw = previous.orientation if previous is not None else (0.0, 0.0, 0.0)
        u, v, w = decompose(fz, fx, prev_uvw, dims.epsilon)

        frames = {
            'shoulder': JointFrame(as_vector(shoulder), as_vector(sx), as_vector(sy), as_vector(sz)),
            'bicep': JointFrame(as_vector(shoulder), as_vector(bx), as_vector(sy), as_vector(bz)),
            'elbow': JointFrame(as_vector(elbow), as_vector(ex), as_vector(sy), as_vector(ez)),
            'ulna': JointFrame(as_vector(ulna), as_vector(ux), as_vector(uy), as_vector(uz)),
            'finger': JointFrame(as_vector(finger), as_vector(fx), as_vector(np.cross(fz, fx)), as_vector(fz)),
        }

        return Keyframe(
            angles=angles,
            shoulder=as_vector(shoulder),
            elbow=as_vector(elbow),
            ulna=as_vector(ulna),
            wrist=as_vector(wrist),
            finger=as_vector(finger),
            forward=as_vector(fz),
            right=as_vector(fx),
            u=u, v=v, w=w,
            base=previous.base if previous is not None else IDENTITY_BASE,
            frames=frames,
        )

    # ========================================================================
    # Inverse Kinematics
    # ========================================================================

    def inverse_kinematics(self, finger: Sequence[float], forward: Sequence[float], right: Sequence[float],
                           previous: Optional[Keyframe] = None,
                           orientation: Optional[Tuple[float, float, float]] = None) -> IKResult:
        """
        Finger pose to joint angles.

        Args:
            finger: Target finger position in the arm base frame
            forward: Target finger forward direction
            right: Target finger right direction (orthogonalised against forward)
            previous: Last accepted keyframe, used for every continuity
                      tie-break (defaults to the home keyframe)
            orientation: U/V/W to store on the result; decomposed from the
                         basis when omitted

        Returns:
            IKResult(True, keyframe, None) on success, otherwise
            IKResult(False, None, Singular | Unreachable)
        """
        dims = self.dimensions
        eps = dims.epsilon
        if previous is None:
            previous = self.home_keyframe()
        prev = previous.angles

        finger = np.asarray(finger, dtype=float)
        fz = np.asarray(forward, dtype=float)
        if np.linalg.norm(fz) < eps:
            return ik_failure(Singular("Finger forward vector is zero"))
        fz = unit(fz)
        fx = np.asarray(right, dtype=float)
        fx = fx - np.dot(fx, fz) * fz
        if np.linalg.norm(fx) < eps:
            return ik_failure(Singular("Finger right vector is parallel to forward"))
        fx = unit(fx)

        wrist = finger - fz * dims.tool_length

        # Azimuth of the arm plane
        if math.hypot(wrist[0], wrist[1]) < eps:
            return ik_failure(Singular("Wrist is on the base axis, azimuth undefined"))
        heading = math.degrees(math.atan2(wrist[1], wrist[0]))
        candidates = (unwrap_toward(heading, prev[0]), unwrap_toward(heading + 180.0, prev[0]))
        angle0 = min(candidates, key=lambda a: abs(a - prev[0]))

        a0 = math.radians(angle0)
        sx = np.array([math.cos(a0), math.sin(a0), 0.0])
        sz = GLOBAL_UP.copy()
        sy = np.cross(sx, sz)
        shoulder = self.shoulder

        # Elbow from the shoulder circle (R) and the wrist circle (r)
        R = dims.shoulder_to_elbow
        r = dims.elbow_to_wrist
        sw = wrist - shoulder
        d = float(np.linalg.norm(sw))
        if d > R + r:
            return ik_failure(Unreachable(f"Wrist distance {d:.3f} exceeds reach {R + r:.3f}"))
        if d < eps:
            return ik_failure(Unreachable("Wrist coincides with the shoulder"))
        x = (d * d - r * r + R * R) / (2.0 * d)
        if abs(x) > R:
            return ik_failure(Unreachable(f"Wrist distance {d:.3f} inside the inner reach {abs(R - r):.3f}"))
        h = math.sqrt(max(R * R - x * x, 0.0))
        sw_hat = sw / d
        normal = np.cross(sy, sw_hat)
        mid = shoulder + sw_hat * x
        elbow = min((mid + normal * h, mid - normal * h),
                    key=lambda e: float(np.sum((e - previous.elbow) ** 2)))

        # Shoulder and elbow pitch from the bone directions in the arm plane
        se_offset = dims.shoulder_elbow_offset
        we_offset = dims.wrist_elbow_offset
        bicep = elbow - shoulder
        forearm = wrist - elbow
        beta = math.degrees(math.atan2(np.dot(bicep, sz), np.dot(bicep, sx)))
        gamma = math.degrees(math.atan2(np.dot(forearm, sz), np.dot(forearm, sx)))
        angle1 = unwrap_toward(180.0 - se_offset - beta, prev[1])
        angle2 = unwrap_toward(180.0 - se_offset - we_offset + gamma - beta, prev[2])

        phi = math.radians(beta + se_offset)
        bz = _in_plane(sx, sz, phi)
        bx = np.cross(bz, sy)
        psi = math.radians(gamma - we_offset)
        ez = _in_plane(sx, sz, psi)
        ex = np.cross(ez, sy)
        ulna = elbow + ex * dims.elbow_to_ulna_y + ez * dims.elbow_to_ulna_z

        # Ulna frame: finger direction projected off the forearm axis
        c = float(np.dot(ez, fz))
        if abs(c) > 1.0 - eps:
            return ik_failure(Singular("Finger direction is colinear with the forearm"))
        ux_primary = unit(fz - c * ez)

        branches = []
        for sign in (1.0, -1.0):
            ux = ux_primary * sign
            uy = np.cross(ux, ez)
            wx = np.cross(uy, fz)
            angle3 = math.degrees(math.atan2(-np.dot(sy, ux), np.dot(ex, ux)))
            angle4 = math.degrees(math.atan2(np.dot(ux, fz), np.dot(ez, fz)))
            angle5 = math.degrees(math.atan2(-np.dot(uy, fx), np.dot(wx, fx)))
            branches.append((
                (unwrap_toward(angle3, prev[3]), unwrap_toward(angle4, prev[4]), unwrap_toward(angle5, prev[5])),
                ux, uy,
            ))
        (angle3, angle4, angle5), ux, uy = min(branches, key=lambda b: abs(b[0][0] - prev[3]))
        if ux is not branches[0][1]:
            self.logger.debug(f"[SixAxis] Ulna flipped: J3 {angle3:.3f} (previous {prev[3]:.3f})")

        if orientation is None:
            orientation = decompose(fz, fx, previous.orientation, eps)
        u, v, w = orientation

        frames = {
            'shoulder': JointFrame(as_vector(shoulder), as_vector(sx), as_vector(sy), as_vector(sz)),
            'bicep': JointFrame(as_vector(shoulder), as_vector(bx), as_vector(sy), as_vector(bz)),
            'elbow': JointFrame(as_vector(elbow), as_vector(ex), as_vector(sy), as_vector(ez)),
            'ulna': JointFrame(as_vector(ulna), as_vector(ux), as_vector(uy), as_vector(ez)),
            'finger': JointFrame(as_vector(finger), as_vector(fx), as_vector(np.cross(fz, fx)), as_vector(fz)),
        }

        keyframe = Keyframe(
            angles=(angle0, angle1, angle2, angle3, angle4, angle5),
            shoulder=as_vector(shoulder),
            elbow=as_vector(elbow),
            ulna=as_vector(ulna),
            wrist=as_vector(wrist),
            finger=as_vector(finger),
            forward=as_vector(fz),
            right=as_vector(fx),
            u=float(u), v=float(v), w=float(w),
            base=previous.base,
            frames=frames,
        )
        return IKResult(True, keyframe, None)
