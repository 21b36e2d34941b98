import Bio.PDB as bp
from .base import BiopythonOverlayClass
from .model import Model
from ..utilities.exceptions import PdbLoadError


class Structure(bp.Structure.Structure, BiopythonOverlayClass):
    child_class = Model

    def __repr__(self):
        return "<cm.{} id={}>".format(self.__class__.__name__, self.id)

    def __str__(self):
        return "<cm.{} id={}>".format(self.__class__.__name__, self.id)

    def get_models(self) -> list[Model]:
        return list(self.child_list)

    def get_model(self, serial:int=1) -> Model:
        """
        Returns a model by its 1-based serial (order in the file).
        """
        models = self.get_models()
        if serial < 1 or serial > len(models):
            raise PdbLoadError("Model {} not found in {} ({} models)".format(serial, self.get_name(), len(models)))
        return models[serial-1]

    def get_pdb_code(self) -> str:
        return self.data["info"].get("pdb_code", "")
