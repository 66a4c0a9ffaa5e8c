"""
Backend selection and dispatch system for the fluid pipeline.

Supports two backends:
1. CPU (NumPy) - baseline implementation, per-particle loop vectorized over neighbors
2. Numba - JIT-compiled, particle loops run in parallel with prange

The backend can be selected globally or per-function call.
"""

import enum
import logging
import warnings
from typing import Callable, Dict, List, Optional

import numba
import numpy as np

logger = logging.getLogger(__name__)

# Above this many particles Numba's compile cost pays for itself quickly
NUMBA_PARTICLE_THRESHOLD = 200


class Backend(enum.Enum):
    """Available computation backends."""
    CPU = "cpu"      # NumPy
    NUMBA = "numba"  # Numba JIT


class BackendManager:
    """Holds the current backend and the per-backend stage implementations."""

    def __init__(self):
        self._current_backend = Backend.CPU
        self._implementations: Dict[str, Dict[Backend, Callable]] = {}

    @property
    def current_backend(self) -> Backend:
        return self._current_backend

    def set_backend(self, backend: Backend):
        self._current_backend = backend
        logger.info("Backend set to: %s", backend.value)

    def auto_select_backend(self, n_particles: int) -> Backend:
        """Pick the backend for a problem size (does not switch to it)."""
        if n_particles > NUMBA_PARTICLE_THRESHOLD:
            return Backend.NUMBA
        return Backend.CPU

    def register_implementation(self, function_name: str, backend: Backend,
                                implementation: Callable):
        self._implementations.setdefault(function_name, {})[backend] = implementation

    def get_implementation(self, function_name: str,
                           backend: Optional[Backend] = None) -> Callable:
        """Get the implementation of a stage for a backend.

        Args:
            function_name: Name of the stage
            backend: Backend to use (None for current)

        Raises:
            ValueError: If the stage has no implementation for that backend
        """
        if backend is None:
            backend = self._current_backend

        implementations = self._implementations.get(function_name)
        if not implementations:
            raise ValueError(f"No implementations registered for {function_name}")
        if backend not in implementations:
            raise ValueError(f"No {backend.value} implementation for {function_name}")
        return implementations[backend]

    def dispatch(self, function_name: str, *args, backend: Optional[Backend] = None, **kwargs):
        """Dispatch a function call to appropriate backend."""
        impl = self.get_implementation(function_name, backend)
        return impl(*args, **kwargs)

    def registered_stages(self, backend: Backend) -> List[str]:
        return sorted(name for name, impls in self._implementations.items() if backend in impls)

    def print_info(self):
        """Print the backends and how many stages each implements."""
        print("\nSPH Backend Information")
        print("=" * 60)
        print(f"  numpy {np.__version__}, numba {numba.__version__}")
        for backend in Backend:
            marker = "*" if backend is self._current_backend else " "
            print(f"{marker} {backend.value:6s}: {len(self.registered_stages(backend))} stages")
        print("=" * 60)


# Global backend manager instance
_backend_manager = BackendManager()


def parse_backend(backend: str) -> Backend:
    """Convert a backend name to ``Backend``, raising ValueError if unknown."""
    try:
        return Backend(backend.lower())
    except ValueError:
        raise ValueError(f"Invalid backend: {backend}. Choose from: "
                         + ", ".join(b.value for b in Backend))


# Public API
def set_backend(backend: str) -> bool:
    """Set the global backend.

    Args:
        backend: 'cpu' or 'numba'

    Returns:
        True if successful
    """
    try:
        backend_enum = parse_backend(backend)
    except ValueError as e:
        warnings.warn(str(e))
        return False
    _backend_manager.set_backend(backend_enum)
    return True


def get_backend() -> str:
    """Get current backend name."""
    return _backend_manager.current_backend.value


def list_backends() -> Dict[str, bool]:
    """Backend names mapped to whether every registered stage supports them."""
    stages = {name for b in Backend for name in _backend_manager.registered_stages(b)}
    return {b.value: set(_backend_manager.registered_stages(b)) == stages for b in Backend}


def auto_select_backend(n_particles: int) -> str:
    """Auto-select best backend for particle count."""
    backend = _backend_manager.auto_select_backend(n_particles)
    _backend_manager.set_backend(backend)
    return backend.value


def print_backend_info():
    """Print backend information."""
    _backend_manager.print_info()


# Decorator for backend-specific implementations
def backend_function(function_name: str):
    """Decorator to register backend-specific implementations.

    Usage:
        @backend_function("compute_density")
        @for_backend(Backend.NUMBA)
        def _compute_density_numba(...):
            ...
    """
    def decorator(func):
        for backend in getattr(func, '_backends', ()):
            _backend_manager.register_implementation(function_name, backend, func)
        return func
    return decorator


def for_backend(*backends: Backend):
    """Helper decorator to specify the backend(s) an implementation serves."""
    def decorator(func):
        func._backends = backends
        return func
    return decorator


def dispatch(function_name: str, *args, backend: Optional[str] = None, **kwargs):
    """Dispatch function to appropriate backend.

    Args:
        function_name: Name of the function
        *args: Positional arguments
        backend: Override backend (None for current)
        **kwargs: Keyword arguments

    Returns:
        Function result
    """
    backend_enum = parse_backend(backend) if backend else None
    return _backend_manager.dispatch(function_name, *args, backend=backend_enum, **kwargs)
