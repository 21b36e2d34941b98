import Bio.PDB as bp
from .base import BiopythonOverlayClass
from .chain import Chain
from ..utilities.exceptions import PdbLoadError



class Model(bp.Model.Model, BiopythonOverlayClass):
    child_class = Chain

    def __repr__(self):
        return "<cm.{} id={}>".format(self.__class__.__name__, self.id)

    def __str__(self):
        return "<cm.{} id={}>".format(self.__class__.__name__, self.id)

    def get_chain(self, code:str) -> Chain:
        if code is None or code.strip() == "":
            code = " "
        if code not in self.child_dict:
            raise PdbLoadError("Chain '{}' not found in model {} (chains: {})".format(
                code, self.serial_num, ", ".join([c.id for c in self.child_list])))
        return self.child_dict[code]
