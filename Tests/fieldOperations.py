"""
Finite difference exactness of gradient and Laplacian on low order polynomials.
"""
import numpy as np
import pytest
from Scripts.errors import MissingSampleError
from Scripts.field_operations import gradient, laplacian, sample_vector
from Scripts.sparse_field import field_from_mask, sample, vector_field_from_mask


def polynomial_field(fn, origin=(-2.0, -2.0, -2.0), voxel_size=0.5, n=9):
    coords = [origin[a] + voxel_size * np.arange(n) for a in range(3)]
    X, Y, Z = np.meshgrid(*coords, indexing='ij')
    return field_from_mask(origin, voxel_size, np.ones((n, n, n), dtype=bool), fn(X, Y, Z))


@pytest.mark.parametrize("step", [0.5, 1.0])
def test_gradient_of_linear_field(step):
    field = polynomial_field(lambda x, y, z: 2 * x + 3 * y - z + 7)
    for position in [(0.0, 0.0, 0.0), (0.5, -1.0, 1.0), (-1.0, 1.0, -0.5)]:
        np.testing.assert_allclose(gradient(field, position, step), [2.0, 3.0, -1.0], atol=1e-12)


@pytest.mark.parametrize("step", [0.5, 1.0])
def test_laplacian_of_quadratic_field(step):
    field = polynomial_field(lambda x, y, z: x**2 + y**2 + z**2)
    for position in [(0.0, 0.0, 0.0), (0.5, -1.0, 1.0), (1.0, 1.0, -1.0)]:
        assert np.isclose(laplacian(field, position, step), 6.0)


def test_stencil_finer_than_lattice_reads_centre_sample():
    # +-1e-3 snaps onto the centre sample, so every difference vanishes
    field = polynomial_field(lambda x, y, z: x**2 + 3 * y)
    np.testing.assert_array_equal(gradient(field, (0.5, 0.5, 0.5)), [0.0, 0.0, 0.0])
    assert laplacian(field, (0.5, 0.5, 0.5)) == 0.0


def test_missing_neighbour_aborts_operator():
    field = polynomial_field(lambda x, y, z: x + y + z)
    field.active[4, 4, 5] = False   # (0, 0, 0.5)
    values = field.values.copy()

    with pytest.raises(MissingSampleError) as err:
        gradient(field, (0.0, 0.0, 0.0), 0.5)
    assert err.value.position == (0.0, 0.0, 0.5)
    with pytest.raises(MissingSampleError):
        laplacian(field, (0.0, 0.0, 0.0), 0.5)
    # at the lattice edge the outer neighbour does not exist
    with pytest.raises(MissingSampleError):
        laplacian(field, (2.0, 0.0, 0.0), 0.5)

    assert np.array_equal(field.values, values)
    assert laplacian(field, (1.0, 1.0, 1.0), 0.5) == 0.0


def test_sample_vector():
    mask = np.ones((3, 3, 3), dtype=bool)
    mask[0, 0, 0] = False
    velocity = vector_field_from_mask((0, 0, 0), 1.0, mask, [0.0, 0.0, -1.5])

    np.testing.assert_array_equal(sample_vector(velocity, (1.0, 1.0, 1.0)), [0.0, 0.0, -1.5])
    with pytest.raises(MissingSampleError) as err:
        sample_vector(velocity, (0.0, 0.0, 0.0))
    assert err.value.kind == 'vector'
    assert not velocity.active[0, 0, 0]


def test_half_voxel_stencil_is_translation_invariant():
    # stencil offsets land exactly between samples, ties must round the same way everywhere
    field = polynomial_field(lambda x, y, z: x, origin=(0.0, 0.0, 0.0), voxel_size=1.0, n=5)
    assert [sample(field, (x, 2.0, 2.0))[0] for x in (0.5, 1.5, 2.5, 3.5)] == [1.0, 2.0, 3.0, 4.0]

    g1 = gradient(field, (1.0, 2.0, 2.0), 0.5)
    g2 = gradient(field, (2.0, 2.0, 2.0), 0.5)
    np.testing.assert_array_equal(g1, g2)
    assert g1[0] == 1.0
