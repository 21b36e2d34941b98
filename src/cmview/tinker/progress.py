from ..utilities.logging import log
from ..datasources import PdbFileModel



class ConsoleProgressDialog(object):
    """
    Progress dialog of a Tinker run printed to the console.
    """
    def __init__(self, view, action, models:int):
        self.view = view
        self.action = action
        self.models = models
        self.state = None
        self.done = 0
        self.visible = False

    def create_gui(self):
        self.visible = True
        log("title", "Tinker reconstruction ({} models)".format(self.models))

    def set_state(self, state):
        self.state = state
        log(1, "Tinker: {}".format(getattr(state, "value", state)))

    def files_done(self, done:int):
        self.done = done
        log(2, "{}/{} structures generated".format(done, self.models))

    def dispose(self):
        self.visible = False



class ConsoleView(object):
    """
    Headless view receiving the result of a Tinker run as its second model.
    """
    def __init__(self, first_model=None):
        self.first_model = first_model
        self.second_model = None

    def do_load_second_model_from_pdb_file(self, file_name:str):
        edge_type, cutoff = "Ca", 8.0
        if self.first_model is not None:
            edge_type, cutoff = self.first_model.edge_type, self.first_model.dist_cutoff
        model = PdbFileModel(file_name, edge_type, cutoff)
        chain_code = model.pdb.get_model(1).child_list[0].id
        self.second_model = model.load(chain_code, 1)
        log("header", "Second model loaded from: {}".format(file_name))
        if self.first_model is not None:
            common = set(self.first_model.get_contacts()) & set(self.second_model.get_contacts())
            log(1, "{} of {} contacts in common".format(len(common), len(self.first_model.get_contacts())))
        return self.second_model
