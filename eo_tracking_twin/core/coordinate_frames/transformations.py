"""
Coordinate Frame Transformations for the Airborne Tracking Chain

This module turns platform attitude, gimbal angles and FSM angles into
line-of-sight (LOS) vectors, and derives the scalar pointing error.

Key Frames:
- World Frame (W): Y up, Z forward (toward the target range axis)
- Body Frame (B): Aircraft frame, rotated from W by the platform attitude
- Gimbal Frame (G): Body frame rotated by azimuth (about Y) then elevation
- Mirror Frame (M): Gimbal frame rotated by FSM yaw (about Y) then pitch

Rotation Chain:
--------------
    R_total = R_platform · R_y(az) · R_x(-el) · R_y(fsm_y) · R_x(-fsm_x)
    L_actual = R_total · [0, 0, 1]^T

The platform orientation is an intrinsic Y-X-Z Euler sequence built from
(yaw, -pitch, -roll). Elevation and FSM pitch rotate about -X so that a
positive angle raises the boresight toward +Y. Both conventions must stay
as-is: the ideal angles computed by :meth:`ideal_gimbal_angles` assume them.

Lever Arm:
---------
The LOS origin is the intersection of the gimbal's two rotation axes,
offset from the aircraft reference point by a fixed body-frame lever arm.
Measuring from any other point on the turret introduces parallax when the
gimbal rotates.
"""

import numpy as np
from typing import Tuple, Optional
from scipy.spatial.transform import Rotation


PLATFORM_EULER_ORDER = 'YXZ'                     # Intrinsic yaw -> pitch -> roll
GIMBAL_LEVER_ARM = (0.0, -1.2, 2.0)              # Body-frame offset of gimbal axes [m]
ELEVATION_SIGN = -1.0                            # Elevation rotates about -X
FORWARD = np.array([0.0, 0.0, 1.0])              # Boresight reference vector

_X_AXIS = np.array([1.0, 0.0, 0.0])
_Y_AXIS = np.array([0.0, 1.0, 0.0])


class LineOfSightKinematics:
    """
    Rigid-body kinematics of the aircraft / gimbal / FSM chain.

    Usage:
    ------
    >>> kin = LineOfSightKinematics()
    >>> q_ac = kin.platform_rotation(roll, pitch, yaw)
    >>> az, el, los = kin.ideal_gimbal_angles(q_ac, target_pos)
    >>> pointing = kin.pointing_vector(q_ac, az_act, el_act, fsm_x, fsm_y)
    >>> error = kin.angle_between(pointing, los)
    """

    def __init__(self, config: Optional[dict] = None):
        """
        Parameters
        ----------
        config : dict, optional
            - 'platform_position': Aircraft reference point in world [m]
            - 'gimbal_lever_arm': Body-frame offset of the gimbal axes [m]
        """
        config = config or {}
        self.platform_position = np.asarray(
            config.get('platform_position', (0.0, 0.0, 0.0)), dtype=float
        )
        self.gimbal_lever_arm = np.asarray(
            config.get('gimbal_lever_arm', GIMBAL_LEVER_ARM), dtype=float
        )

    @staticmethod
    def platform_rotation(roll: float, pitch: float, yaw: float) -> Rotation:
        """
        Aircraft orientation from attitude angles.

        Parameters
        ----------
        roll, pitch, yaw : float
            Aircraft attitude [rad]

        Returns
        -------
        Rotation
            Body-to-world rotation
        """
        return Rotation.from_euler(PLATFORM_EULER_ORDER, [yaw, -pitch, -roll])

    @staticmethod
    def axis_rotation(axis: np.ndarray, angle_rad: float) -> Rotation:
        """Right-handed rotation of ``angle_rad`` about a unit ``axis``."""
        return Rotation.from_rotvec(angle_rad * axis)

    def gimbal_mount_position(self, q_platform: Rotation) -> np.ndarray:
        """World position of the gimbal rotation center [m]."""
        return self.platform_position + q_platform.apply(self.gimbal_lever_arm)

    def ideal_gimbal_angles(
        self,
        q_platform: Rotation,
        target_pos: np.ndarray
    ) -> Tuple[float, float, np.ndarray]:
        """
        Gimbal angles that would put the boresight on the target.

        Parameters
        ----------
        q_platform : Rotation
            Aircraft body-to-world rotation
        target_pos : np.ndarray
            Target position in world frame [m]

        Returns
        -------
        Tuple[float, float, np.ndarray]
            (ideal_az, ideal_el, los_world) - ideal angles [rad] and the
            world-frame unit LOS vector from the gimbal center to the target
        """
        mount = self.gimbal_mount_position(q_platform)
        los_world = np.asarray(target_pos, dtype=float) - mount
        los_world = los_world / np.linalg.norm(los_world)

        los_body = q_platform.inv().apply(los_world)

        ideal_az = float(np.arctan2(los_body[0], los_body[2]))
        # Unit vector, but rounding can push |y| just past 1
        ideal_el = float(np.arcsin(np.clip(los_body[1], -1.0, 1.0)))

        return ideal_az, ideal_el, los_world

    def pointing_rotation(
        self,
        q_platform: Rotation,
        gimbal_az: float,
        gimbal_el: float,
        fsm_x: float,
        fsm_y: float
    ) -> Rotation:
        """Compose the full parent-to-child rotation chain."""
        q_az = self.axis_rotation(_Y_AXIS, gimbal_az)
        q_el = self.axis_rotation(_X_AXIS, ELEVATION_SIGN * gimbal_el)
        q_fsm_y = self.axis_rotation(_Y_AXIS, fsm_y)
        q_fsm_x = self.axis_rotation(_X_AXIS, ELEVATION_SIGN * fsm_x)
        return q_platform * q_az * q_el * q_fsm_y * q_fsm_x

    def pointing_vector(
        self,
        q_platform: Rotation,
        gimbal_az: float,
        gimbal_el: float,
        fsm_x: float,
        fsm_y: float
    ) -> np.ndarray:
        """
        Actual boresight direction in world frame.

        Returns
        -------
        np.ndarray
            Unit pointing vector
        """
        q_total = self.pointing_rotation(q_platform, gimbal_az, gimbal_el, fsm_x, fsm_y)
        pointing = q_total.apply(FORWARD)
        return pointing / np.linalg.norm(pointing)

    @staticmethod
    def angle_between(a: np.ndarray, b: np.ndarray) -> float:
        """
        Angle between two vectors in [0, π].

        Uses atan2(|a×b|, a·b), which keeps full precision near 0 and π
        where arccos of the dot product does not.
        """
        cross = np.linalg.norm(np.cross(a, b))
        dot = float(np.dot(a, b))
        return float(np.arctan2(cross, dot))

    def full_transform(
        self,
        attitude: Tuple[float, float, float],
        target_pos: np.ndarray,
        gimbal_az: float,
        gimbal_el: float,
        fsm_x: float,
        fsm_y: float
    ) -> Tuple[float, dict]:
        """
        Complete transformation from chain angles to scalar LOS error.

        Parameters
        ----------
        attitude : Tuple[float, float, float]
            Aircraft (roll, pitch, yaw) [rad]
        target_pos : np.ndarray
            Target position in world frame [m]
        gimbal_az, gimbal_el : float
            Actual gimbal angles [rad]
        fsm_x, fsm_y : float
            Actual FSM angles [rad]

        Returns
        -------
        Tuple[float, dict]
            - los_error: Pointing error [rad]
            - metadata: Intermediate vectors and ideal angles
        """
        q_platform = self.platform_rotation(*attitude)
        ideal_az, ideal_el, los_world = self.ideal_gimbal_angles(q_platform, target_pos)
        pointing = self.pointing_vector(q_platform, gimbal_az, gimbal_el, fsm_x, fsm_y)

        metadata = {
            'ideal_az': ideal_az,
            'ideal_el': ideal_el,
            'los_world': los_world,
            'pointing_world': pointing,
            'gimbal_mount': self.gimbal_mount_position(q_platform),
        }
        return self.angle_between(pointing, los_world), metadata
