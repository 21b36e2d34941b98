import Bio.PDB as bp
import numpy as np
import pandas as pd
from copy import deepcopy

from .contacts import Contact, ContactList, EdgeNbh
from ..utilities.sequences import to_one_letter
from ..utilities.logging import log



class RIGraph(object):
    """
    Residue interaction graph of a single chain. Nodes are residue serials, edges are undirected and weighted.
    :param edge_type: Atoms used to define contacts (see Chain.representative_atoms).
    :param dist_cutoff: Distance cutoff in Angstrom.
    """
    def __init__(self, edge_type:str="Ca", dist_cutoff:float=8.0, pdb_code:str="", chain_code:str="",
                 target_num:int=0):
        self.edge_type = edge_type
        self.dist_cutoff = dist_cutoff
        self.pdb_code = pdb_code
        self.chain_code = chain_code
        self.target_num = target_num
        self.nodes = {}
        self.edges = {}

    def __repr__(self):
        return "<cm.RIGraph {}{} {} {} nodes:{} edges:{}>".format(self.pdb_code, self.chain_code, self.edge_type,
                                                                  self.dist_cutoff, len(self.nodes), len(self.edges))

    def __len__(self):
        return len(self.edges)


    @classmethod
    def from_chain(cls, chain, edge_type:str="Ca", dist_cutoff:float=8.0, pdb_code:str="", target_num:int=0,
                   secondary_structure:dict|None=None):
        """
        Builds the graph of a chain. Two residues are in contact when any pair of their representative atoms is
        within dist_cutoff.
        :param chain: cmview Chain.
        :param secondary_structure: (optional) Residue serial -> secondary structure letter.
        :return: RIGraph.
        """
        graph = cls(edge_type, dist_cutoff, pdb_code=pdb_code, chain_code=chain.id.strip(), target_num=target_num)
        if secondary_structure is None:
            secondary_structure = {}
        for residue in chain.residues():
            graph.add_node(residue.id[1], residue.get_resname(), secondary_structure.get(residue.id[1]))

        atoms = chain.representative_atoms(edge_type)
        atom_list = [a for serial_atoms in atoms.values() for a in serial_atoms]
        if len(atom_list) < 2:
            log("warning", "Not enough {} atoms to compute contacts in chain {}".format(edge_type, chain.id))
            return graph
        ns = bp.NeighborSearch(atom_list)
        for a1, a2 in ns.search_all(dist_cutoff, level="A"):
            i = a1.get_parent().id[1]
            j = a2.get_parent().id[1]
            if i != j:
                graph.add_edge(i, j)
        return graph


    def add_node(self, serial:int, resn:str, ss:str|None=None):
        self.nodes[serial] = {"resn": resn, "ss": ss}

    def add_edge(self, i:int, j:int, weight:float=1.0):
        c = Contact(i, j, weight)
        self.edges[(c.i, c.j)] = weight

    def remove_edge(self, i:int, j:int):
        self.edges.pop((min(i, j), max(i, j)), None)

    def has_contact(self, i:int, j:int) -> bool:
        return (min(i, j), max(i, j)) in self.edges

    def get_weight(self, i:int, j:int) -> float:
        return self.edges.get((min(i, j), max(i, j)), 0.0)

    def get_contacts(self) -> ContactList:
        return ContactList([Contact(i, j, w) for (i, j), w in sorted(self.edges.items())])

    def get_serials(self) -> list[int]:
        return sorted(self.nodes.keys())

    def get_sequence(self) -> str:
        return "".join([to_one_letter(self.nodes[s]["resn"]) for s in self.get_serials()])

    def get_neighbours(self, i:int) -> set[int]:
        nbs = set()
        for a, b in self.edges.keys():
            if a == i:
                nbs.add(b)
            elif b == i:
                nbs.add(a)
        return nbs


    def get_common_nbh(self, i:int, j:int) -> EdgeNbh:
        """
        Residues in contact with both i and j.
        :return: EdgeNbh of neighbour serial -> residue name, sorted by serial.
        """
        nbh = EdgeNbh(i, j)
        for k in sorted(self.get_neighbours(i) & self.get_neighbours(j)):
            nbh[k] = self.nodes[k]["resn"] if k in self.nodes else "UNK"
        return nbh


    def restrict_to_seq_sep(self, min_seq_sep:int, max_seq_sep:int) -> int:
        """
        Removes contacts with sequence separation out of [min_seq_sep, max_seq_sep]. Bounds <= 0 are ignored.
        :return: Number of removed contacts.
        """
        removed = 0
        for (i, j) in list(self.edges.keys()):
            sep = j - i
            if (min_seq_sep > 0 and sep < min_seq_sep) or (max_seq_sep > 0 and sep > max_seq_sep):
                del self.edges[(i, j)]
                removed += 1
        return removed


    def to_matrix(self) -> np.ndarray:
        """
        Symmetric contact map indexed by the position of each residue in get_serials(). Cells hold edge weights.
        """
        serials = self.get_serials()
        index = {s: n for n, s in enumerate(serials)}
        matrix = np.zeros((len(serials), len(serials)))
        for (i, j), w in self.edges.items():
            if i in index and j in index:
                matrix[index[i], index[j]] = w
                matrix[index[j], index[i]] = w
        return matrix

    def to_dataframe(self) -> pd.DataFrame:
        rows = []
        for c in self.get_contacts():
            rows.append({"i": c.i, "j": c.j,
                         "i_res": self.nodes.get(c.i, {}).get("resn"),
                         "j_res": self.nodes.get(c.j, {}).get("resn"),
                         "range": c.range, "weight": c.weight})
        return pd.DataFrame(rows, columns=["i", "j", "i_res", "j_res", "range", "weight"])

    def copy(self):
        return deepcopy(self)
