__all__ = ["contacts", "rig", "ensemble"]

from .contacts import Contact, ContactList, EdgeNbh
from .rig import RIGraph
from .ensemble import RIGEnsemble
