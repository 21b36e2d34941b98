import shutil
import Bio.PDB as bp
from ..utilities.logging import log
from ..utilities import config



def ss_to_index(ss):
    """
    Reduces the 8 DSSP states to helix (0), strand (1) or other (2).
    """
    if ss in ("H", "G", "I"):
        return 0
    if ss in ("E", "B"):
        return 1
    return 2



def index_to_ss(ss):
    if ss == 0:
        return "H"
    if ss == 1:
        return "E"
    return None


def dssp_available(dssp_command:str|None=None) -> bool:
    if dssp_command is None:
        dssp_command = config.get("DSSP_EXECUTABLE")
    return shutil.which(dssp_command) is not None


def run_dssp(model, file_path:str, chain_code:str, dssp_command:str|None=None) -> dict[int, str]:
    """
    Assigns secondary structure with DSSP through Bio.PDB.
    :param model: Biopython/cmview model containing the chain.
    :param file_path: Structure file the model was read from.
    :param chain_code: Chain to assign.
    :param dssp_command: DSSP executable, config DSSP_EXECUTABLE by default.
    :return: Dictionary of residue serial to "H" or "E", residues in other states are left out.
    """
    if dssp_command is None:
        dssp_command = config.get("DSSP_EXECUTABLE")
    chain_code = chain_code if chain_code else " "
    log(3, "Running {} on {}".format(dssp_command, file_path))
    dssp = bp.DSSP(model, file_path, dssp=dssp_command)
    ss = {}
    for (ch, res_id) in dssp.keys():
        if ch != chain_code:
            continue
        label = index_to_ss(ss_to_index(dssp[(ch, res_id)][2]))
        if label is not None:
            ss[res_id[1]] = label
    return ss
