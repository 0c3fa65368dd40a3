"""Exceptions raised by the kernel.

Only invalid input is reported to callers. Degenerate geometry (zero-area
faces, coincident curve samples) is skipped, and numerically unstable frame
seeding falls back to a fixed basis; neither raises.
"""


class KernelError(Exception):
    """Base class for kernel errors."""


class InvalidInputError(KernelError, ValueError):
    """Input data cannot produce a result (missing positions, too few points).

    Subclasses :class:`ValueError` so callers that already guard geometry
    calls with ``except ValueError`` keep working.
    """


__all__ = ['KernelError', 'InvalidInputError']
