import Bio.PDB as bp
from .base import BiopythonOverlayClass
from ..utilities.sequences import to_one_letter, backbone_atoms
from ..utilities.logging import log



EDGE_TYPES = ("CA", "CB", "C", "N", "O", "BB", "SC", "ALL")


class Chain(bp.Chain.Chain, BiopythonOverlayClass):
    child_class = None

    def __repr__(self):
        return "<cm.{} id={}>".format(self.__class__.__name__, self.id)

    def __str__(self):
        return "<cm.{} id={}>".format(self.__class__.__name__, self.id)

    def residues(self) -> list[bp.Residue.Residue]:
        """
        Standard residues of the chain, hetero groups and waters excluded.
        """
        return [r for r in self.child_list if r.id[0] == " "]

    def serials(self) -> list[int]:
        return [r.id[1] for r in self.residues()]

    def sequence(self) -> str:
        return "".join([to_one_letter(r.get_resname()) for r in self.residues()])

    def renumber(self) -> dict[tuple[int, str], int]:
        """
        Gives every standard residue a unique, increasing integer serial without insertion code. Inserted residues
        shift the serials of the residues after them (1, 2, 2A, 3 becomes 1, 2, 3, 4), gaps are kept.
        The previous id of a renumbered residue is kept in residue.xtra["original_id"].
        :return: Dictionary of (old serial, insertion code) to new serial of the renumbered residues.
        """
        new_serials = []
        prev = None
        shift = 0
        for residue in self.residues():
            het, resseq, icode = residue.id
            new = resseq + shift
            if prev is not None and new <= prev:
                new = prev + 1
                shift = new - resseq
            prev = new
            if (resseq, icode) != (new, " "):
                new_serials.append((residue, new))
        renumbered = {}
        # New ids may still be held by residues not yet moved
        for residue, new in new_serials:
            residue.xtra.setdefault("original_id", residue.id)
            renumbered[residue.id[1:]] = new
            residue.id = (residue.id[0], new, "~")
        for residue, new in new_serials:
            residue.id = (residue.id[0], new, " ")
        if len(renumbered) > 0:
            log(2, "Renumbered {} residues of chain {}".format(len(renumbered), self.id))
        return renumbered

    def unobserved(self) -> list[int]:
        """
        Residue serials missing between the first and last observed residues.
        """
        serials = self.serials()
        if len(serials) == 0:
            return []
        observed = set(serials)
        return [s for s in range(serials[0], serials[-1]+1) if s not in observed]

    def representative_atoms(self, edge_type:str="Ca") -> dict[int, list[bp.Atom.Atom]]:
        """
        Atoms used to compute contacts for each residue.
        :param edge_type: One of Ca, Cb, C, N, O, BB, SC, ALL (case insensitive). Glycines use CA for Cb and SC.
        :return: Dictionary of residue serial to list of atoms, residues without atoms of the type are left out.
        """
        edge_type = edge_type.upper()
        if edge_type not in EDGE_TYPES:
            raise ValueError("Unknown edge type: {} (allowed: {})".format(edge_type, ", ".join(EDGE_TYPES)))
        atoms = {}
        for residue in self.residues():
            heavy = [a for a in residue.get_atoms() if a.element != "H"]
            if edge_type in ("CA", "C", "N", "O"):
                selected = [a for a in heavy if a.get_id() == edge_type]
            elif edge_type == "CB":
                selected = [a for a in heavy if a.get_id() == "CB"]
                if len(selected) == 0:
                    selected = [a for a in heavy if a.get_id() == "CA"]
            elif edge_type == "BB":
                selected = [a for a in heavy if a.get_id() in backbone_atoms]
            elif edge_type == "SC":
                selected = [a for a in heavy if a.get_id() not in backbone_atoms + ("OXT",)]
                if len(selected) == 0:
                    selected = [a for a in heavy if a.get_id() == "CA"]
            else:
                selected = heavy
            if len(selected) > 0:
                atoms[residue.id[1]] = selected
        return atoms
