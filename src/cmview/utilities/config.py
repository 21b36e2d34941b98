import os, tempfile
from .logging import log


PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

CONFIG_FILE_NAME = "cmview.cfg"
ENV_PREFIX = "CMVIEW_"

DEFAULTS = {
    "TEMP_DIR": os.path.join(tempfile.gettempdir(), "cmview"),
    "PYMOL_SERVER_URL": "http://localhost:9123",
    "PYMOL_EXECUTABLE": "pymol",
    "PYMOL_FUNCTIONS_SCRIPT": os.path.join(PACKAGE_DIR, "visualisation", "pymol_functions.py"),
    "TINKER_BIN_DIR": "",
    "TINKER_FORCEFIELD": "amber99.prm",
    "TINKER_FORCE_CONSTANT": "100.0",
    "DSSP_EXECUTABLE": "mkdssp",
    "FORCE_DSSP": "false",
    "WATCHER_INTERVAL": "1.0",
    "PDB_DOWNLOAD_URL": "https://files.rcsb.org/download/{}.pdb",
}

_file_values = {}



def read_config_file(path:str) -> dict:
    """
    Reads a KEY=value configuration file. Empty lines and lines starting with # are ignored.
    :param path: Path to the configuration file.
    :return: Dictionary of upper-cased keys to string values.
    """
    values = {}
    with open(path) as f:
        for n, line in enumerate(f):
            line = line.strip()
            if line == "" or line.startswith("#"):
                continue
            if "=" not in line:
                log("warning", "Ignoring malformed line {} in {}: {}".format(n+1, path, line))
                continue
            k, v = line.split("=", 1)
            values[k.strip().upper()] = v.strip()
    return values


def load_config(path:str|None=None) -> dict:
    """
    Loads the configuration file, replacing previously loaded values. Without a path, ./cmview.cfg and then
    ~/.cmview/cmview.cfg are tried.
    :param path: (optional) Explicit configuration file.
    :return: Values read from the file.
    """
    global _file_values
    if path is None:
        candidates = [os.path.join(os.getcwd(), CONFIG_FILE_NAME),
                      os.path.join(os.path.expanduser("~"), ".cmview", CONFIG_FILE_NAME)]
    else:
        candidates = [path]
    _file_values = {}
    for candidate in candidates:
        if os.path.isfile(candidate):
            log("debug", "Reading config file: {}".format(candidate))
            _file_values = read_config_file(candidate)
            break
    else:
        if path is not None:
            log("warning", "Config file not found: {}".format(path))
    return _file_values


def get(key:str, default=None) -> str|None:
    key = key.upper()
    if ENV_PREFIX + key in os.environ:
        return os.environ[ENV_PREFIX + key]
    if key in _file_values:
        return _file_values[key]
    return DEFAULTS.get(key, default)


def get_float(key:str) -> float:
    return float(get(key))


def get_bool(key:str) -> bool:
    return str(get(key)).strip().lower() in ("1", "true", "yes", "on")


def temp_dir() -> str:
    path = os.path.abspath(get("TEMP_DIR"))
    os.makedirs(path, exist_ok=True)
    return path


load_config()
