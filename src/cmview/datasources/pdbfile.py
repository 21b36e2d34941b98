import os

from .model import Model, set_loaded_graph_id, DEFAULT_LOADEDGRAPHID, NO_PDB_CODE
from ..graphs import RIGraph, RIGEnsemble
from ..structure.imports import loadPDB, downloadPDB
from ..utilities.exceptions import PdbLoadError, ModelConstructionError
from ..utilities.logging import log
from ..utilities import config



class PdbFileModel(Model):
    """
    A contact map data model based on a structure loaded from a PDB file.
    """
    def __init__(self, file_name:str, edge_type:str="Ca", dist_cutoff:float=8.0, min_seq_sep:int=0,
                 max_seq_sep:int=0):
        super().__init__(edge_type, dist_cutoff, min_seq_sep, max_seq_sep)
        self.file_name = file_name
        try:
            self.pdb = loadPDB(file_name)
        except PdbLoadError as e:
            raise ModelConstructionError(str(e)) from e


    def load(self, pdb_chain_code:str, model_serial:int=1, load_ensemble_graph:bool=False):
        """
        Loads the chain corresponding to the given chain code identifier and model number.
        If load_ensemble_graph is True, the graph in this model will be the average graph of the ensemble of all
        models instead of the graph of the specified model only. The structure still corresponds to the given model.
        :param pdb_chain_code: pdb chain code of the chain to be loaded
        :param model_serial: the model number to be loaded (1-based)
        :param load_ensemble_graph: whether to set the graph to the (weighted) ensemble graph of all models
        """
        log("header", "Loading {} chain {} model {}".format(self.file_name, pdb_chain_code, model_serial))
        try:
            model = self.pdb.get_model(model_serial)
            self.chain = model.get_chain(pdb_chain_code)
        except PdbLoadError as e:
            raise ModelConstructionError(str(e)) from e
        self.chain_code = pdb_chain_code
        self.model_serial = model_serial
        self.check_and_assign_secondary_structure()
        self.renumber_residues()

        pdb_code = self.pdb.get_pdb_code()
        target_num = self.pdb.data["info"].get("target_num", 0)
        if not load_ensemble_graph or len(self.pdb.get_models()) == 1:
            self.graph = RIGraph.from_chain(self.chain, self.edge_type, self.dist_cutoff, pdb_code=pdb_code,
                                            target_num=target_num, secondary_structure=self.secondary_structure)
        else:
            e = RIGEnsemble(self.edge_type, self.dist_cutoff)
            try:
                e.load_from_multi_model_file(self.file_name, pdb_chain_code)
            except IOError as e1:
                raise ModelConstructionError("Error loading ensemble graph: {}".format(e1)) from e1
            self.graph = e.get_average_graph()
            self.graph.pdb_code = pdb_code
            self.graph.chain_code = self.chain.id.strip()
            self.graph.target_num = target_num
            for serial, node in self.graph.nodes.items():
                node["ss"] = self.secondary_structure.get(serial)
            self.is_graph_weighted = True

        name = DEFAULT_LOADEDGRAPHID
        if self.graph.pdb_code != NO_PDB_CODE:
            name = self.graph.pdb_code + self.graph.chain_code
        if self.graph.target_num != 0:
            name = "T{:04d}".format(self.graph.target_num)
        self.loaded_graph_id = set_loaded_graph_id(name, self)

        self.write_temp_pdb_file()

        self.filter_contacts(self.min_seq_sep, self.max_seq_sep)
        self.print_warnings(pdb_chain_code)
        log(1, "Loaded {}: {} residues, {} contacts".format(self.loaded_graph_id, len(self.graph.nodes),
                                                           len(self.graph)))
        return self



class PdbCodeModel(PdbFileModel):
    """
    PdbFileModel of an entry downloaded from the PDB (PDB_DOWNLOAD_URL) into TEMP_DIR/pdb.
    """
    def __init__(self, pdb_code:str, edge_type:str="Ca", dist_cutoff:float=8.0, min_seq_sep:int=0,
                 max_seq_sep:int=0):
        try:
            file_name = downloadPDB(pdb_code, os.path.join(config.temp_dir(), "pdb"))
        except PdbLoadError as e:
            raise ModelConstructionError(str(e)) from e
        super().__init__(file_name, edge_type, dist_cutoff, min_seq_sep, max_seq_sep)
