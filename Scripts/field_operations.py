"""
Finite difference operators on lattice fields.

All operators are fail-fast: a stencil sample that is not active raises
MissingSampleError instead of being replaced by zero or an extrapolated value.
"""
import numpy as np
from Scripts.sparse_field import sample_or_fail

AXES = np.eye(3)


def gradient(field, position, step=1e-3):
    """
    Approximates the gradient of a scalar field at 'position' with central differences.

    Parameters:
    -----------
    field : ScalarField
        Field to differentiate
    position : sequence of 3 floats
        Evaluation point (same length units as the field)
    step : float
        Finite difference offset h along each axis

    Returns:
    --------
    np.ndarray
        (dT/dx, dT/dy, dT/dz)
    """
    position = np.asarray(position, dtype=float)
    grad = np.zeros(3)
    for a in range(3):
        offset = AXES[a] * step
        forward = sample_or_fail(field, position + offset)
        backward = sample_or_fail(field, position - offset)
        grad[a] = (forward - backward) / (2 * step)
    return grad


def laplacian(field, position, step=1e-3):
    """
    Approximates the Laplacian of a scalar field at 'position' with second order central differences.
    The centre value is sampled once and shared by the three axis terms.
    """
    position = np.asarray(position, dtype=float)
    center = sample_or_fail(field, position)
    lap = 0.0
    for a in range(3):
        offset = AXES[a] * step
        forward = sample_or_fail(field, position + offset)
        backward = sample_or_fail(field, position - offset)
        lap += (forward - 2 * center + backward) / step**2
    return lap


def sample_vector(field, position):
    # velocity must exist wherever the temperature is active
    return np.asarray(sample_or_fail(field, position), dtype=float)
