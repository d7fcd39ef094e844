import numpy as np
from Scripts.errors import MissingSampleError


class BoundingBox():
    """
    Axis aligned box (min and max corner) enclosing a fluid or solid domain.
    """
    def __init__(self, vec_min, vec_max):
        self.vec_min = np.asarray(vec_min, dtype=float)
        self.vec_max = np.asarray(vec_max, dtype=float)
        if self.vec_min.shape != (3,) or self.vec_max.shape != (3,):
            raise ValueError('Bounding box corners must be 3D points')
        if np.any(self.vec_max < self.vec_min):
            raise ValueError('Bounding box max corner %s lies below min corner %s'
                             % (self.vec_max, self.vec_min))

    @classmethod
    def from_field(cls, field):
        # minimal box around the active samples of a field
        if not np.any(field.active):
            raise ValueError('Cannot compute the bounding box of an empty field')
        idx = np.argwhere(field.active)
        return cls(field.position_of(idx.min(axis=0)), field.position_of(idx.max(axis=0)))

    def __repr__(self):
        return 'BoundingBox(%s, %s)' % (self.vec_min.tolist(), self.vec_max.tolist())


class _LatticeField():
    """
    Values stored on a regular voxel lattice.

    A continuous position is looked up by snapping it to the nearest lattice
    sample. Samples that were never set, and positions outside the lattice,
    are inactive.
    """
    components = None

    def __init__(self, origin, voxel_size, shape):
        # origin is the position of sample (0, 0, 0)
        # voxel_size is the lattice spacing in every direction
        # shape is the number of samples in x, y and z
        if voxel_size <= 0:
            raise ValueError('Voxel size must be positive, got %s' % voxel_size)
        self.origin = np.asarray(origin, dtype=float)
        self.voxel_size = float(voxel_size)
        self.shape = tuple(int(n) for n in shape)
        if self.components is None:
            self.values = np.zeros(self.shape)
        else:
            self.values = np.zeros(self.shape + (self.components,))
        self.active = np.zeros(self.shape, dtype=bool)

    def index_of(self, position):
        """
        Returns the lattice index nearest to 'position' or None if it falls outside the lattice.
        """
        # halves always round up
        idx = np.floor((np.asarray(position, dtype=float) - self.origin) / self.voxel_size + 0.5).astype(int)
        if np.any(idx < 0) or np.any(idx >= self.shape):
            return None
        return tuple(idx)

    def position_of(self, index):
        return self.origin + np.asarray(index, dtype=float) * self.voxel_size

    def get_value(self, position):
        idx = self.index_of(position)
        if idx is None or not self.active[idx]:
            return None, False
        value = self.values[idx]
        if self.components is None:
            return float(value), True
        return value.copy(), True

    def set_value(self, position, value):
        idx = self.index_of(position)
        if idx is None:
            raise ValueError('Position %s lies outside the field lattice' % (tuple(position),))
        self.values[idx] = value
        self.active[idx] = True

    def active_count(self):
        return int(np.count_nonzero(self.active))

    def traverse_active(self):
        # yields (position, value) of every active sample
        for idx in np.argwhere(self.active):
            idx = tuple(idx)
            value = self.values[idx]
            if self.components is None:
                yield self.position_of(idx), float(value)
            else:
                yield self.position_of(idx), value.copy()

    def copy(self):
        other = self.__class__(self.origin, self.voxel_size, self.shape)
        other.values = self.values.copy()
        other.active = self.active.copy()
        return other


class ScalarField(_LatticeField):
    """
    One value per active sample (temperature, density, viscosity).
    """
    components = None


class VectorField(_LatticeField):
    """
    Three components per active sample (flow velocity).
    """
    components = 3


def sample(field, position):
    """
    Returns (value, is_active). Never raises for inactive positions.
    """
    return field.get_value(position)


def sample_or_fail(field, position):
    value, valid = field.get_value(position)
    if not valid:
        kind = 'vector' if isinstance(field, VectorField) else 'scalar'
        raise MissingSampleError(position, kind)
    return value


def field_from_mask(origin, voxel_size, mask, value):
    """
    Scalar field active wherever 'mask' is True.

    Parameters:
    -----------
    origin : sequence of 3 floats
        Position of mask[0, 0, 0]
    voxel_size : float
        Lattice spacing
    mask : 3D bool array
        Active samples, indexed [x, y, z]
    value : float or 3D array
        Constant value or per-sample values with the shape of the mask
    """
    mask = np.asarray(mask, dtype=bool)
    field = ScalarField(origin, voxel_size, mask.shape)
    field.values[mask] = np.broadcast_to(np.asarray(value, dtype=float), mask.shape)[mask]
    field.active[:] = mask
    return field


def vector_field_from_mask(origin, voxel_size, mask, vector):
    # same as field_from_mask, 'vector' is a 3-vector or an array of shape mask.shape + (3,)
    mask = np.asarray(mask, dtype=bool)
    field = VectorField(origin, voxel_size, mask.shape)
    field.values[mask] = np.broadcast_to(np.asarray(vector, dtype=float), mask.shape + (3,))[mask]
    field.active[:] = mask
    return field


def const_scalar_field(vector_field, const_value):
    """
    Returns a scalar field with a constant value and the active structure of 'vector_field'.
    """
    output = ScalarField(vector_field.origin, vector_field.voxel_size, vector_field.shape)
    for position, _ in vector_field.traverse_active():
        output.set_value(position, const_value)
        check_value, valid = output.get_value(position)
        if not valid or check_value != const_value:
            raise ValueError('Constant field readback failed at %s' % (tuple(position),))
    return output
