

d3to1 = {'CYS': 'C', 'ASP': 'D', 'SER': 'S', 'GLN': 'Q', 'LYS': 'K',
             'ILE': 'I', 'PRO': 'P', 'THR': 'T', 'PHE': 'F', 'ASN': 'N',
             'GLY': 'G', 'HIS': 'H', 'LEU': 'L', 'ARG': 'R', 'TRP': 'W',
             'ALA': 'A', 'VAL': 'V', 'GLU': 'E', 'TYR': 'Y', 'MET': 'M'}

d1to3 = {v: k for k, v in d3to1.items()}

# Residue names Tinker's "protein" program knows under a different code
tinker_names = {"HIS": "HID", "MSE": "MET"}

backbone_atoms = ("N", "CA", "C", "O")



def to_one_letter(resn:str) -> str:
    return d3to1.get(resn.upper(), "X")


def to_three_letter(res:str) -> str:
    return d1to3.get(res.upper(), "UNK")


def to_tinker(resn:str) -> str:
    resn = resn.upper()
    return tinker_names.get(resn, resn)
