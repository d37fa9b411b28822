from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np


Matrix4 = np.ndarray  # 4x4 row-major, column vectors (p' = M @ p)

# Normals shorter than this are left unnormalized.
_EPS_LEN = 1e-12


def rotation_from_euler_zyx(yaw_deg: float, pitch_deg: float, roll_deg: float) -> np.ndarray:
    """3x3 rotation for Euler ZYX angles in degrees (Rz @ Ry @ Rx)."""
    rx = math.radians(roll_deg)
    ry = math.radians(pitch_deg)
    rz = math.radians(yaw_deg)
    Rx = np.array([
        [1, 0, 0],
        [0, math.cos(rx), -math.sin(rx)],
        [0, math.sin(rx), math.cos(rx)],
    ])
    Ry = np.array([
        [math.cos(ry), 0, math.sin(ry)],
        [0, 1, 0],
        [-math.sin(ry), 0, math.cos(ry)],
    ])
    Rz = np.array([
        [math.cos(rz), -math.sin(rz), 0],
        [math.sin(rz), math.cos(rz), 0],
        [0, 0, 1],
    ])
    return Rz @ Ry @ Rx


def compose_trs(
    position: Sequence[float] = (0.0, 0.0, 0.0),
    rotation_deg: Sequence[float] = (0.0, 0.0, 0.0),
    scale: Optional[Sequence[float]] = None,
) -> Matrix4:
    """
    Build a local-to-world matrix from translation, Euler ZYX (yaw, pitch, roll) and scale.
    """
    yaw, pitch, roll = (float(a) for a in rotation_deg)
    sx, sy, sz = (1.0, 1.0, 1.0) if scale is None else (float(s) for s in scale)
    m = np.eye(4)
    m[:3, :3] = rotation_from_euler_zyx(yaw, pitch, roll) @ np.diag([sx, sy, sz])
    m[:3, 3] = np.asarray(position, dtype=float)
    return m


def translation(matrix: Matrix4) -> np.ndarray:
    return np.asarray(matrix, dtype=float)[:3, 3].copy()


def transform_points(matrix: Matrix4, points: np.ndarray) -> np.ndarray:
    m = np.asarray(matrix, dtype=float)
    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    return pts @ m[:3, :3].T + m[:3, 3]


def transform_normals(matrix: Matrix4, normals: np.ndarray) -> np.ndarray:
    m = np.asarray(matrix, dtype=float)[:3, :3]
    try:
        normal_matrix = np.linalg.inv(m).T
    except np.linalg.LinAlgError:
        normal_matrix = m
    out = np.asarray(normals, dtype=float).reshape(-1, 3) @ normal_matrix.T
    lengths = np.linalg.norm(out, axis=1, keepdims=True)
    return np.where(lengths > _EPS_LEN, out / np.maximum(lengths, _EPS_LEN), out)


__all__ = ["Matrix4", "compose_trs", "rotation_from_euler_zyx", "translation", "transform_points", "transform_normals"]
