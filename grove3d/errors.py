"""Exceptions raised by the vegetation builders."""


class Grove3dError(Exception):
    """Base class for all grove3d errors."""


class InvalidParameterError(Grove3dError, ValueError):
    """A builder received dimensions or counts it cannot turn into a mesh.

    Raised before any geometry is allocated, so a failed call never leaves a
    partially built mesh behind.
    """
