import Bio.PDB as bp
import os

import requests

from ..utilities.strings import clean_string, get_digits
from ..utilities.logging import log
from ..utilities.exceptions import PdbLoadError
from ..utilities import config
from .structure import Structure


def loadPDB(file_path:str, name:str=None, quiet=True) -> Structure:
    """
    Loads a PDB or mmCIF file into a Structure object.
    :param file_path: Path to the structure file
    :param name: ID assigned to the structure, file name without extension by default
    :param quiet: Passed to parser
    :return: Structure object (cmview)
    """
    if not os.path.isfile(file_path):
        raise PdbLoadError("File not found: {}".format(file_path))
    if name is None:
        name = os.path.basename(file_path).split(".")[0]
    ext = file_path.split(".")[-1].lower()
    try:
        if "pdb" in ext or "ent" in ext:
            parsed = bp.PDBParser(QUIET=quiet).get_structure(name, file_path)
        elif "cif" in ext:
            parsed = bp.MMCIFParser(QUIET=quiet).get_structure(name, file_path)
        else:
            raise PdbLoadError("File format not recognized: {}".format(file_path))
    except (ValueError, KeyError, IndexError) as e:
        raise PdbLoadError("Could not parse {}: {}".format(file_path, e)) from e
    if len(parsed) == 0:
        raise PdbLoadError("No models found in: {}".format(file_path))
    structure = Structure.cast(parsed)
    structure.paths["original"] = os.path.abspath(file_path)
    structure.paths["self"] = os.path.abspath(file_path)
    structure.data["info"]["name"] = name
    structure.data["info"]["pdb_code"] = str(getattr(parsed, "header", {}).get("idcode", "") or "").strip().lower()
    structure.data["info"]["target_num"] = read_casp_target(file_path)
    return structure


def downloadPDB(pdb_code:str, data_dir:str, overwrite:bool=False) -> str:
    """
    Downloads a single PDB entry.
    :param pdb_code: 4 letter PDB code
    :param data_dir: Directory to download to, created if missing
    :param overwrite: True to download the file again if already present
    :return: Path to the downloaded file
    """
    pdb_code = clean_string(pdb_code).lower()
    if len(pdb_code) != 4:
        raise PdbLoadError("Invalid PDB code: {}".format(pdb_code))
    os.makedirs(data_dir, exist_ok=True)
    file_path = os.path.join(data_dir, "{}.pdb".format(pdb_code))
    if os.path.exists(file_path) and not overwrite:
        log("debug", "Using cached file: {}".format(file_path))
        return file_path
    url = config.get("PDB_DOWNLOAD_URL").format(pdb_code.upper())
    log("debug", "...Downloading {}".format(url))
    try:
        response = requests.get(url, timeout=60)
    except requests.RequestException as e:
        raise PdbLoadError("Failed to download {}: {}".format(url, e)) from e
    if response.status_code != 200:
        raise PdbLoadError("Failed to download {} (HTTP {})".format(url, response.status_code))
    with open(file_path, "w") as f:
        f.write(response.text)
    return file_path


def read_casp_target(file_path:str) -> int:
    """
    CASP target number from the "TARGET T0xxx" record of a prediction file, 0 if there is none.
    """
    if not file_path.lower().split(".")[-1] in ("pdb", "ent", "ts"):
        return 0
    with open(file_path, errors="replace") as f:
        for line in f:
            if line.startswith("TARGET"):
                n = get_digits(line[6:], allow=(), integer=True)
                return n if n is not None else 0
            if line.startswith("ATOM"):
                break
    return 0


def read_secondary_structure(file_path:str, chain_code:str) -> dict[int, str]:
    """
    Parses the HELIX and SHEET records of a PDB file.
    :param file_path: PDB file.
    :param chain_code: Chain to read.
    :return: Dictionary of residue serial to "H" (helix) or "E" (strand).
    """
    ss = {}
    if not file_path.lower().split(".")[-1] in ("pdb", "ent"):
        return ss
    chain_code = chain_code if chain_code else " "
    with open(file_path, errors="replace") as f:
        for line in f:
            if line.startswith("HELIX "):
                ch, start, end_ch, end, label = line[19], line[21:25], line[31], line[33:37], "H"
            elif line.startswith("SHEET "):
                ch, start, end_ch, end, label = line[21], line[22:26], line[32], line[33:37], "E"
            elif line.startswith("ATOM"):
                break
            else:
                continue
            if ch != chain_code or end_ch != chain_code:
                continue
            try:
                for s in range(int(start), int(end)+1):
                    ss[s] = label
            except ValueError:
                log("warning", "Malformed secondary structure record: {}".format(line.strip()))
    return ss
