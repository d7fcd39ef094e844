"""
Straight pipe example: a fluid core surrounded by a solid wall, water entering
through the top slice and flowing along -Z. Builds the fields, runs the heat
transfer and plots temperature slices through the pipe.
"""
from Scripts.heat_transfer import HeatTransferSimulation, SimulationParameters, lattice_points
from Scripts.sparse_field import (BoundingBox, const_scalar_field, field_from_mask,
                                  vector_field_from_mask, sample)
import numpy as np
import matplotlib.pyplot as plt


class SimplePipe():
    """
    Voxelized pipe along Z.

    Parameters:
    -----------
    length : float
        Pipe length along Z
    r_inner : float
        Radius of the fluid core
    r_outer : float
        Outer radius of the solid wall
    voxel_size : float
        Lattice spacing of all generated fields
    inlet_temp : float, optional
        Temperature of the water on the inlet slice, defaults to fluid_initial_temp
    """
    def __init__(self, length=20., r_inner=4., r_outer=6., voxel_size=0.5,
                 fluid_density=1000., fluid_viscosity=0.00000897, inlet_velocity=1.5,
                 fluid_initial_temp=300., solid_initial_temp=350., inlet_temp=None):
        if not 0 < r_inner < r_outer:
            raise ValueError('Expected 0 < r_inner < r_outer, got %s, %s' % (r_inner, r_outer))
        self.voxel_size = voxel_size
        self.inlet_velocity = inlet_velocity

        # lattice covering the whole pipe, indexed [x, y, z]
        n_xy = int(np.round(2 * r_outer / voxel_size)) + 1
        n_z = int(np.round(length / voxel_size)) + 1
        self.origin = np.array([-r_outer, -r_outer, 0.0])
        x = self.origin[0] + voxel_size * np.arange(n_xy)
        z = voxel_size * np.arange(n_z)
        X, Y, Z = np.meshgrid(x, x, z, indexing='ij')
        R = np.sqrt(X**2 + Y**2)

        self.fluid_mask = R <= r_inner
        self.solid_mask = (R > r_inner) & (R <= r_outer)
        # water enters through the top slice
        self.inlet_mask = self.fluid_mask & (Z == Z.max())

        self.fluid_temp = field_from_mask(self.origin, voxel_size, self.fluid_mask, fluid_initial_temp)
        self.solid_temp = field_from_mask(self.origin, voxel_size, self.solid_mask, solid_initial_temp)
        if inlet_temp is not None:
            self.fluid_temp.values[self.inlet_mask] = inlet_temp

        # plug flow: the inlet velocity everywhere in the core, pointing down the pipe
        self.velocity = vector_field_from_mask(self.origin, voxel_size, self.fluid_mask, [0.0, 0.0, -inlet_velocity])

        self.density = const_scalar_field(self.velocity, fluid_density)
        self.viscosity = const_scalar_field(self.velocity, fluid_viscosity)

    def fluid_domain(self):
        return BoundingBox.from_field(self.fluid_temp)

    def solid_domain(self):
        return BoundingBox.from_field(self.solid_temp)


def probe_fields(box, step, fields):
    """
    Walks the lattice of 'box' (Z, X, Y order) and collects active values.

    Parameters:
    -----------
    box : BoundingBox
    step : float
        Probe spacing
    fields : dict
        name -> ScalarField or VectorField

    Returns:
    --------
    list of (position, dict)
        Positions where at least one field is active, with the active values by name
    """
    samples = []
    for position in lattice_points(box, step):
        values = {}
        for name, field in fields.items():
            value, valid = sample(field, position)
            if valid:
                values[name] = value
        if values:
            samples.append((position, values))
    return samples


def temperature_slice(field, box, z, step):
    """
    Samples 'field' on the plane Z = z. Inactive positions are NaN.
    Returns X, Y meshgrids and the sampled values, shaped (ny, nx).
    """
    nx, ny = (np.floor((box.vec_max[:2] - box.vec_min[:2]) / step + 1e-9).astype(int) + 1)
    X, Y = np.meshgrid(box.vec_min[0] + step * np.arange(nx), box.vec_min[1] + step * np.arange(ny))
    T = np.full(X.shape, np.nan)
    for i in range(ny):
        for j in range(nx):
            value, valid = sample(field, (X[i, j], Y[i, j], z))
            if valid:
                T[i, j] = value
    return X, Y, T


def plot_midplane(pipe, z=None, show=True):
    """
    Contour plots of fluid and solid temperature on one Z slice of the pipe.
    """
    box = BoundingBox.from_field(pipe.solid_temp)
    if z is None:
        z = 0.5 * (box.vec_min[2] + box.vec_max[2])
    Xf, Yf, Tf = temperature_slice(pipe.fluid_temp, box, z, pipe.voxel_size)
    Xs, Ys, Ts = temperature_slice(pipe.solid_temp, box, z, pipe.voxel_size)

    fig = plt.figure(figsize=(12, 5))

    plt.subplot(1, 2, 1)
    plt.title(f'Fluid Temperature at z = {z:.1f} (K)')
    plt.contourf(Xf, Yf, np.ma.masked_invalid(Tf), levels=20, cmap='Blues')
    plt.colorbar(label='Temperature (K)')
    plt.xlabel('X (mm)')
    plt.ylabel('Y (mm)')

    plt.subplot(1, 2, 2)
    plt.title(f'Solid Temperature at z = {z:.1f} (K)')
    plt.contourf(Xs, Ys, np.ma.masked_invalid(Ts), levels=20, cmap='hot')
    plt.colorbar(label='Temperature (K)')
    plt.xlabel('X (mm)')
    plt.ylabel('Y (mm)')

    plt.tight_layout()
    if show:
        plt.show()
    return fig


def run_example(pipe=None, parameters=None, verbose=True):
    """
    Runs the pipe heat transfer with water properties and returns (pipe, simulation).

    Warm inlet water is carried down the core by the plug flow and spreads by diffusion.
    """
    if pipe is None:
        pipe = SimplePipe(inlet_temp=320.)
    if parameters is None:
        # stencil matches the sweep lattice, points next to the wall or the pipe ends
        # have no complete stencil and keep their temperature
        parameters = SimulationParameters(density=1000.,            # kg/m3
                                          specific_heat=4200.,      # J/(kg*K)
                                          thermal_conductivity=0.6, # W/(m*K)
                                          time_step=0.01,           # s
                                          iterations=100,
                                          traversal_step=2.0,
                                          stencil_step=2.0,
                                          missing_sample_policy='skip')
    simulation = HeatTransferSimulation(pipe.fluid_temp, pipe.solid_temp, pipe.velocity,
                                        pipe.fluid_domain(), pipe.solid_domain(),
                                        parameters, verbose=verbose)
    simulation.run()
    return pipe, simulation


if __name__ == "__main__":
    pipe, simulation = run_example()
    samples = probe_fields(pipe.fluid_domain(), 2.0, {'density': pipe.density,
                                                      'viscosity': pipe.viscosity,
                                                      'velocity': pipe.velocity,
                                                      'fluid_temperature': pipe.fluid_temp,
                                                      'solid_temperature': pipe.solid_temp})
    fluid_T = [values['fluid_temperature'] for _, values in samples if 'fluid_temperature' in values]
    print(f"Probed {len(samples)} positions, fluid temperature {min(fluid_T):.3f} K to {max(fluid_T):.3f} K")
    plot_midplane(pipe)
