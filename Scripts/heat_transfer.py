from Scripts.errors import InvalidParameterError, MissingSampleError
from Scripts.field_operations import gradient, laplacian, sample_vector
from Scripts.sparse_field import sample
import numpy as np

UPDATE_POLICIES = ('in_place', 'double_buffer')
MISSING_SAMPLE_POLICIES = ('raise', 'skip')


class SimulationParameters():
    """
    Material and stepping inputs of the coupled fluid/solid heat transfer.

    Defaults are water-like (rho = 1000 kg/m3, cp = 4200 J/(kg K), k = 0.6 W/(m K)).
    traversal_step is the spacing of the sweep lattice, stencil_step the
    finite difference offset; the two are independent.
    """
    def __init__(self, density=1000., specific_heat=4200., thermal_conductivity=0.6,
                 time_step=0.01, iterations=100, traversal_step=2.0, stencil_step=1e-3,
                 update_policy='in_place', missing_sample_policy='raise'):
        self.density = density
        self.specific_heat = specific_heat
        self.thermal_conductivity = thermal_conductivity
        self.time_step = time_step
        self.iterations = iterations
        self.traversal_step = traversal_step
        self.stencil_step = stencil_step
        self.update_policy = update_policy
        self.missing_sample_policy = missing_sample_policy
        self.validate()

    def validate(self):
        for name in ('density', 'specific_heat', 'thermal_conductivity', 'time_step',
                     'iterations', 'traversal_step', 'stencil_step'):
            if not np.isfinite(getattr(self, name)):
                raise InvalidParameterError('%s must be finite, got %s' % (name, getattr(self, name)))
        for name in ('density', 'specific_heat', 'traversal_step', 'stencil_step'):
            if not getattr(self, name) > 0:
                raise InvalidParameterError('%s must be positive, got %s' % (name, getattr(self, name)))
        if self.thermal_conductivity < 0:
            raise InvalidParameterError('thermal_conductivity must not be negative, got %s' % self.thermal_conductivity)
        if self.time_step < 0:
            raise InvalidParameterError('time_step must not be negative, got %s' % self.time_step)
        if int(self.iterations) != self.iterations or self.iterations < 0:
            raise InvalidParameterError('iterations must be a non-negative integer, got %s' % self.iterations)
        if self.update_policy not in UPDATE_POLICIES:
            raise InvalidParameterError('Unknown update policy: %s' % self.update_policy)
        if self.missing_sample_policy not in MISSING_SAMPLE_POLICIES:
            raise InvalidParameterError('Unknown missing sample policy: %s' % self.missing_sample_policy)

    @property
    def solid_diffusivity(self):
        # alpha = k / (rho * cp)
        return self.thermal_conductivity / (self.density * self.specific_heat)


def lattice_points(box, step):
    """
    Yields the sweep lattice of 'box' with spacing 'step', max corner included.
    Order is Z outer, X middle, Y inner.
    """
    counts = np.floor((box.vec_max - box.vec_min) / step + 1e-9).astype(int) + 1
    xs, ys, zs = [box.vec_min[a] + step * np.arange(counts[a]) for a in range(3)]
    for z in zs:
        for x in xs:
            for y in ys:
                yield np.array([x, y, z])


class HeatTransferSimulation:
    """
    Explicit time stepping of the fluid energy equation (advection + diffusion)
    and of pure conduction in the solid.

    The temperature fields are modified in place; already active samples are
    updated, no sample is activated or removed.
    """
    def __init__(self, fluid_temp, solid_temp, velocity, fluid_domain, solid_domain,
                 parameters=None, keep_history=False, verbose=False):
        self.fluid_temp = fluid_temp
        self.solid_temp = solid_temp
        self.velocity = velocity
        self.fluid_domain = fluid_domain
        self.solid_domain = solid_domain
        self.params = parameters if parameters is not None else SimulationParameters()
        self.params.validate()
        self.keep_history = keep_history
        self.verbose = verbose

        self.dt = self.params.time_step
        self.current_time = 0.0
        self.skipped_points = 0

        self.fluidHistory = []
        self.solidHistory = []
        if keep_history:
            self.fluidHistory.append(self.fluid_temp.copy())
            self.solidHistory.append(self.solid_temp.copy())

    def fluid_update(self, position, temperature):
        # dT/dt = -u . grad(T) + k * lap(T)
        step = self.params.stencil_step
        grad_temp = gradient(self.fluid_temp, position, step)
        vel = sample_vector(self.velocity, position)
        advection = np.dot(vel, grad_temp)
        diffusion = laplacian(self.fluid_temp, position, step) * self.params.thermal_conductivity
        return temperature + self.dt * (-advection + diffusion)

    def solid_update(self, position, temperature, diffusivity):
        diffusion = laplacian(self.solid_temp, position, self.params.stencil_step) * diffusivity
        return temperature + self.dt * diffusion

    def sweep(self, field, domain, update):
        """
        Visits every lattice point of 'domain' at which 'field' is active and applies 'update'.
        Returns the number of updated points.
        """
        in_place = self.params.update_policy == 'in_place'
        pending = []
        updated = 0
        for position in lattice_points(domain, self.params.traversal_step):
            temperature, valid = sample(field, position)
            if not valid:
                continue
            try:
                new_temperature = update(position, temperature)
            except MissingSampleError:
                if self.params.missing_sample_policy == 'raise':
                    raise
                self.skipped_points += 1
                continue
            if in_place:
                field.set_value(position, new_temperature)
            else:
                pending.append((position, new_temperature))
            updated += 1

        # double buffering: every update above was computed from the pre-sweep state
        for position, new_temperature in pending:
            field.set_value(position, new_temperature)
        return updated

    def step(self):
        diffusivity = self.params.solid_diffusivity
        self.sweep(self.fluid_temp, self.fluid_domain, self.fluid_update)
        self.sweep(self.solid_temp, self.solid_domain,
                   lambda position, temperature: self.solid_update(position, temperature, diffusivity))
        self.current_time += self.dt

    def run(self):
        iterations = int(self.params.iterations)
        self.skipped_points = 0

        for iteration in range(iterations):
            if self.verbose:
                print(f"Iteration {iteration+1}/{iterations}, Time: {self.current_time:.2f}s")
            self.step()

            if self.keep_history:
                self.fluidHistory.append(self.fluid_temp.copy())
                self.solidHistory.append(self.solid_temp.copy())

        if self.skipped_points > 0:
            print(f"Warning: {self.skipped_points} lattice points skipped because of missing stencil samples")
        print("Heat transfer simulation completed.")
        return self.fluid_temp, self.solid_temp


def run_heat_transfer(fluid_temp, solid_temp, velocity, fluid_domain, solid_domain,
                      density, specific_heat, thermal_conductivity, time_step, iterations,
                      traversal_step=2.0, stencil_step=1e-3, **kwargs):
    """
    Runs 'iterations' explicit steps on the given fields and returns the simulation object.
    Extra keyword arguments (update_policy, missing_sample_policy) go to SimulationParameters.
    """
    params = SimulationParameters(density=density,
                                  specific_heat=specific_heat,
                                  thermal_conductivity=thermal_conductivity,
                                  time_step=time_step,
                                  iterations=iterations,
                                  traversal_step=traversal_step,
                                  stencil_step=stencil_step,
                                  **kwargs)
    simulation = HeatTransferSimulation(fluid_temp, solid_temp, velocity, fluid_domain, solid_domain, params)
    simulation.run()
    return simulation
