__all__ = ["pymol", "plots"]

from .pymol import PymolScript, PymolServer, PyMolAdaptor
