import os
from copy import deepcopy

import Bio.PDB as bp
from typing_extensions import Self
from ..utilities.logging import log


class BiopythonOverlayClass:
    child_class = None
    @classmethod
    def cast(cls, entity:bp.Entity.Entity|Self):
        """
        Converts a Bio.PDB object to a cmview object, recursively down to the level where child_class is None.
        :param entity: Bio.PDB object to convert.
        :return: cmview object.
        """

        if isinstance(entity, BiopythonOverlayClass):
            entity.data = deepcopy(entity.data)
            entity.paths = deepcopy(entity.paths)

        entity.__class__ = cls
        entity.base_init()
        if entity.child_class is not None:
            for n, child in enumerate(entity.child_list):
                child.data = deepcopy(entity.data)
                child.paths = deepcopy(entity.paths)
                child.data["info"]["name"] = "{}_{}".format(entity.data["info"]["name"], child.id)
                e = entity.child_class.cast(child)
                entity.child_list[n] = e
                entity.child_dict[e.id] = e

        if hasattr(entity, "_init"):
            entity._init()
        return entity



    def base_init(self):
        if not hasattr(self, "data"):
            self.data = {"info": {
                "name": "_".join([str(i) for i in self.get_full_id()]),
                "cls": "",
            }}
        self.data["info"]["cls"] = self.__class__.__name__
        if not hasattr(self, "paths"):
            self.paths = {"original": None, "self": None}


    def get_name(self) -> str:
        return self.data["info"]["name"]


    def export(self, folder:str, filename:str|None=None) -> str:
        """
        Writes the entity as a PDB file.
        :param folder: Folder to write to, created if missing.
        :param filename: (optional) File name without extension, defaults to the entity name.
        :return: Absolute path of the written file.
        """
        if filename is None:
            filename = self.get_name()
        os.makedirs(folder, exist_ok=True)
        filepath = os.path.abspath(os.path.join(folder, "{}.pdb".format(filename)))
        exp = bp.PDBIO()
        exp.set_structure(self)
        exp.save(filepath)
        self.paths["self"] = filepath
        log("debug", "Exported {} to: {}".format(self, filepath))
        return filepath
