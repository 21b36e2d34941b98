import os, re
import copy as _copy

import numpy as np

from ..graphs import ContactList, EdgeNbh
from ..structure.imports import read_secondary_structure
from ..tools.DSSP import dssp_available, run_dssp
from ..utilities.logging import log
from ..utilities import config



DEFAULT_LOADEDGRAPHID = "Unknown"
NO_PDB_CODE = ""
NO_SEQ_SEP_VAL = -1

loaded_graphs = {}



def set_loaded_graph_id(name:str, model) -> str:
    """
    Registers a model under a unique id. Taken names get a numeric suffix (name_2, name_3...). A model registered
    again keeps its previous id if it was given for the same name, otherwise it moves to the new one.
    :param name: Preferred id.
    :param model: Model to register.
    :return: Id assigned to the model.
    """
    for k, v in list(loaded_graphs.items()):
        if v is model:
            if k == name or re.fullmatch(re.escape(name) + r"_\d+", k):
                return k
            del loaded_graphs[k]
    new_id = name
    n = 2
    while new_id in loaded_graphs:
        new_id = "{}_{}".format(name, n)
        n += 1
    loaded_graphs[new_id] = model
    return new_id


def unregister_loaded_graph(graph_id:str):
    loaded_graphs.pop(graph_id, None)




class Model(object):
    """
    Base contact map data model: a chain of a structure and the residue interaction graph derived from it.
    Subclasses implement load().
    """
    def __init__(self, edge_type:str="Ca", dist_cutoff:float=8.0, min_seq_sep:int=NO_SEQ_SEP_VAL,
                 max_seq_sep:int=NO_SEQ_SEP_VAL):
        self.edge_type = edge_type
        self.dist_cutoff = dist_cutoff
        self.min_seq_sep = min_seq_sep
        self.max_seq_sep = max_seq_sep
        self.pdb = None
        self.chain = None
        self.chain_code = None
        self.model_serial = None
        self.graph = None
        self.loaded_graph_id = None
        self.is_graph_weighted = False
        self.secondary_structure = {}
        self.temp_pdb_file = None

    def __repr__(self):
        return "<cm.{} {}>".format(self.__class__.__name__, self.loaded_graph_id)

    def copy(self):
        """
        Returns a shallow copy of this object.
        """
        return _copy.copy(self)

    def load(self, pdb_chain_code:str, model_serial:int, *args, **kwargs):
        raise NotImplementedError


    def check_and_assign_secondary_structure(self):
        """
        Uses the HELIX/SHEET records of the file, falling back to DSSP if there are none (or if FORCE_DSSP is set).
        """
        path = self.pdb.paths["original"]
        ss = {}
        source = None
        if not config.get_bool("FORCE_DSSP"):
            ss = read_secondary_structure(path, self.chain_code)
            source = "file"
        if len(ss) == 0:
            if dssp_available():
                try:
                    ss = run_dssp(self.pdb.get_model(self.model_serial), path, self.chain_code)
                    source = "DSSP"
                except Exception as e:
                    log("warning", "DSSP failed on {}: {}".format(path, e))
            else:
                log("warning", "No secondary structure found in {} and DSSP ({}) is not available".format(
                    path, config.get("DSSP_EXECUTABLE")))
        if len(ss) > 0:
            log(2, "Secondary structure assigned from {}: {} residues".format(source, len(ss)))
        self.secondary_structure = ss
        return ss


    def renumber_residues(self) -> int:
        """
        Removes insertion codes from the loaded chain (see Chain.renumber) and moves the secondary structure
        assignment to the new serials.
        :return: Number of renumbered residues.
        """
        renumbered = self.chain.renumber()
        residues = self.chain.residues()
        if not any("original_id" in r.xtra for r in residues):
            return 0
        if len(renumbered) > 0:
            log("warning", "Insertion codes in chain {}: {} residues renumbered".format(self.chain_code,
                                                                                        len(renumbered)))
        ss = {}
        for residue in residues:
            het, serial, icode = residue.xtra.get("original_id", residue.id)
            if icode == " " and serial in self.secondary_structure:
                ss[residue.id[1]] = self.secondary_structure[serial]
        self.secondary_structure = ss
        return len(renumbered)


    def write_temp_pdb_file(self) -> str:
        """
        Writes the loaded chain to TEMP_DIR/<loaded_graph_id>.pdb, the file shown in PyMol.
        """
        self.temp_pdb_file = self.chain.export(config.temp_dir(), self.loaded_graph_id)
        return self.temp_pdb_file


    def filter_contacts(self, min_seq_sep:int, max_seq_sep:int) -> int:
        removed = self.graph.restrict_to_seq_sep(min_seq_sep, max_seq_sep)
        if removed > 0:
            log(2, "Removed {} contacts out of sequence separation range [{}, {}]".format(
                removed, min_seq_sep, max_seq_sep))
        return removed


    def print_warnings(self, chain_code:str) -> list[str]:
        warnings = []
        unobserved = self.chain.unobserved()
        if len(unobserved) > 0:
            warnings.append("{} unobserved residues in chain {}".format(len(unobserved), chain_code))
        missing = len(self.chain.residues()) - len(self.chain.representative_atoms(self.edge_type))
        if missing > 0:
            warnings.append("{} residues of chain {} have no {} atoms".format(missing, chain_code, self.edge_type))
        if len(self.graph) == 0:
            warnings.append("No contacts found in chain {} ({} {})".format(chain_code, self.edge_type,
                                                                          self.dist_cutoff))
        for w in warnings:
            log("warning", w)
        return warnings


    def get_pdb_code(self) -> str:
        return self.graph.pdb_code

    def get_chain_code(self) -> str:
        return self.chain_code

    def get_contacts(self) -> ContactList:
        return self.graph.get_contacts()

    def get_common_nbh(self, i:int, j:int) -> EdgeNbh:
        return self.graph.get_common_nbh(i, j)

    def get_sequence(self) -> str:
        return self.chain.sequence()

    def get_serials(self) -> list[int]:
        return self.chain.serials()

    def get_matrix(self) -> np.ndarray:
        return self.graph.to_matrix()

    def has_3d_coords(self) -> bool:
        return self.chain is not None

    def get_file_name(self) -> str|None:
        if self.pdb is None:
            return None
        return self.pdb.paths["original"]

    def get_temp_pdb_file(self) -> str|None:
        if self.temp_pdb_file is not None and os.path.exists(self.temp_pdb_file):
            return self.temp_pdb_file
        return None
