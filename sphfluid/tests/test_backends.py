"""
Test suite for backend selection and CPU/Numba consistency.
"""

import numpy as np
import pytest
import sphfluid
from sphfluid.config import SimulationParams
from sphfluid.core.backend import Backend, BackendManager, dispatch, NUMBA_PARTICLE_THRESHOLD
from sphfluid.core.spatial_grid import UniformGrid
from sphfluid.simulation import FluidSimulation


class TestBackendManagement:
    """Selecting and querying backends."""

    @pytest.fixture(autouse=True)
    def restore_backend(self):
        original_backend = sphfluid.get_backend()
        yield
        sphfluid.set_backend(original_backend)

    def test_list_backends(self):
        assert sphfluid.list_backends() == {'cpu': True, 'numba': True}

    def test_set_backend(self):
        assert sphfluid.set_backend('numba')
        assert sphfluid.get_backend() == 'numba'
        assert sphfluid.set_backend('CPU')
        assert sphfluid.get_backend() == 'cpu'

    def test_invalid_backend_warns(self):
        sphfluid.set_backend('cpu')
        with pytest.warns(UserWarning):
            assert sphfluid.set_backend('gpu') is False
        assert sphfluid.get_backend() == 'cpu'

    def test_auto_select(self):
        assert sphfluid.auto_select_backend(NUMBA_PARTICLE_THRESHOLD) == 'cpu'
        assert sphfluid.auto_select_backend(NUMBA_PARTICLE_THRESHOLD + 1) == 'numba'
        assert sphfluid.get_backend() == 'numba'

    def test_unknown_function(self):
        with pytest.raises(ValueError):
            dispatch('compute_vorticity')

    def test_missing_backend_implementation_raises(self):
        manager = BackendManager()
        manager.register_implementation('compute_density', Backend.CPU, lambda: 'cpu')
        assert manager.dispatch('compute_density') == 'cpu'
        with pytest.raises(ValueError, match="numba"):
            manager.dispatch('compute_density', backend=Backend.NUMBA)
        assert manager.registered_stages(Backend.NUMBA) == []

    def test_simulation_pins_backend(self):
        sphfluid.set_backend('cpu')
        sim = FluidSimulation(SimulationParams(particle_count=4), backend='numba')
        assert sim.active_backend == 'numba'
        assert FluidSimulation(SimulationParams(particle_count=4)).active_backend == 'cpu'


class TestConsistency:
    """Both backends compute the same stages."""

    def prepared(self, make_particles, lattice_positions, backend):
        rng = np.random.default_rng(99)
        particles = make_particles(lattice_positions,
                                   velocities=rng.normal(0.0, 1.0, size=lattice_positions.shape))
        grid = UniformGrid(15.0)
        grid.rebuild(particles)
        sphfluid.find_neighbors(particles, grid, 15.0, backend=backend)
        return particles

    def test_stages_agree(self, make_particles, lattice_positions):
        results = {}
        for name in ('cpu', 'numba'):
            p = self.prepared(make_particles, lattice_positions, name)
            sphfluid.compute_density(p, mass=1.0, radius=15.0, backend=name)
            sphfluid.compute_pressure(p, stiffness=1.0e6, rest_density=1.0e-6, backend=name)
            sphfluid.accumulate_surface_tension(p, radius=15.0, tension=1.0e3, backend=name)
            sphfluid.accumulate_pressure_force(p, radius=15.0, backend=name)
            visc = sphfluid.apply_viscosity(p, radius=15.0, viscosity=0.5, dt=0.01, backend=name)
            rep = sphfluid.apply_repulsion(p, radius=15.0, dt=0.01, backend=name)
            results[name] = (p, visc, rep)

        cpu, numba_ = results['cpu'][0], results['numba'][0]
        for field in ('density', 'pressure', 'force_x', 'force_y', 'velocity_x', 'velocity_y'):
            np.testing.assert_allclose(getattr(numba_, field), getattr(cpu, field),
                                       rtol=1e-10, atol=1e-9, err_msg=field)
        for index in (1, 2):
            for a, b in zip(results['numba'][index], results['cpu'][index]):
                np.testing.assert_allclose(a, b, rtol=1e-10, atol=1e-9)

    def test_overlap_agrees(self, make_particles, lattice_positions):
        positions = {}
        for name in ('cpu', 'numba'):
            p = self.prepared(make_particles, lattice_positions, name)
            corrections = sphfluid.resolve_overlaps(p, min_separation=5.0, backend=name)
            positions[name] = (corrections, p.get_positions())
        assert positions['cpu'][0] == positions['numba'][0]
        np.testing.assert_allclose(positions['numba'][1], positions['cpu'][1], rtol=1e-10)

    def test_simulation_agrees(self):
        params = SimulationParams(particle_count=60)
        runs = {}
        for name in ('cpu', 'numba'):
            sim = FluidSimulation(params, backend=name)
            for _ in range(5):
                positions = sim.step(1.0 / 60.0, pointer=(0.0, 10.0))
            runs[name] = positions
        np.testing.assert_allclose(runs['numba'], runs['cpu'], rtol=1e-8, atol=1e-8)
