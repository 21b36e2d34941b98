__all__ = ["structure", "graphs", "datasources", "visualisation", "tinker", "tools", "utilities"]

from .utilities.logging import log
from .utilities import config
from .structure import loadPDB
from .graphs import Contact, ContactList, EdgeNbh, RIGraph, RIGEnsemble
from .datasources import PdbFileModel, PdbCodeModel
