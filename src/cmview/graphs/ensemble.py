import os

from .rig import RIGraph
from ..structure.imports import loadPDB
from ..utilities.exceptions import PdbLoadError
from ..utilities.logging import log



class RIGEnsemble(object):
    """
    Graphs of the same chain across all the models of a multi-model file.
    """
    def __init__(self, edge_type:str="Ca", dist_cutoff:float=8.0):
        self.edge_type = edge_type
        self.dist_cutoff = dist_cutoff
        self.graphs = []

    def __len__(self):
        return len(self.graphs)

    def load_from_multi_model_file(self, file_path:str, chain_code:str) -> int:
        """
        Loads one graph per model of the file. Raises IOError if the file can not be read.
        :return: Number of graphs loaded.
        """
        if not os.path.isfile(file_path):
            raise IOError("File not found: {}".format(file_path))
        try:
            structure = loadPDB(file_path)
        except PdbLoadError as e:
            raise IOError(str(e)) from e
        self.graphs = []
        for model in structure.get_models():
            try:
                chain = model.get_chain(chain_code)
            except PdbLoadError:
                log("warning", "Chain {} missing in model {}, skipping".format(chain_code, model.serial_num))
                continue
            chain.renumber()
            self.graphs.append(RIGraph.from_chain(chain, self.edge_type, self.dist_cutoff))
        if len(self.graphs) == 0:
            raise IOError("No model of {} contains chain {}".format(file_path, chain_code))
        log(2, "Loaded ensemble of {} graphs from {}".format(len(self.graphs), file_path))
        return len(self.graphs)

    def get_average_graph(self) -> RIGraph:
        """
        Graph with the union of nodes and edges of the ensemble. Edge weights are the fraction of graphs containing
        the edge.
        """
        avg = RIGraph(self.edge_type, self.dist_cutoff)
        if len(self.graphs) == 0:
            return avg
        counts = {}
        for graph in self.graphs:
            for serial, node in graph.nodes.items():
                if serial not in avg.nodes:
                    avg.nodes[serial] = dict(node)
            for edge in graph.edges.keys():
                counts[edge] = counts.get(edge, 0) + 1
        for (i, j), n in counts.items():
            avg.add_edge(i, j, n / len(self.graphs))
        avg.chain_code = self.graphs[0].chain_code
        return avg
