__all__ = ["structure", "model", "chain", "imports"]

from .imports import *
from .structure import Structure
from .model import Model
from .chain import Chain, EDGE_TYPES
