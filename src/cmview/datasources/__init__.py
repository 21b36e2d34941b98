__all__ = ["model", "pdbfile"]

from .model import Model, set_loaded_graph_id, loaded_graphs, DEFAULT_LOADEDGRAPHID
from .pdbfile import PdbFileModel, PdbCodeModel
