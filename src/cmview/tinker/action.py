import atexit, os, time

from .progress import ConsoleProgressDialog, ConsoleView
from .run import TinkerRun
from .watcher import TinkerWatcher
from ..tools.tinker import TinkerRunner
from ..utilities.parallel import ThreadPool
from ..utilities.logging import log
from ..utilities import config



def _remove_if_empty(path:str):
    if os.path.isdir(path) and len(os.listdir(path)) == 0:
        os.rmdir(path)


def create_tmp_dir(tempdir:str, prefix:str) -> str:
    """
    Creates a new folder <tempdir>/<prefix><nanoseconds>, removed at exit if still empty.
    :return: Absolute path of the folder.
    """
    temp = os.path.join(tempdir, prefix + str(time.time_ns()))
    try:
        os.mkdir(temp)
    except OSError as e:
        raise IOError("Could not create temp directory: {}".format(os.path.abspath(temp))) from e
    atexit.register(_remove_if_empty, os.path.abspath(temp))
    return os.path.abspath(temp)



class TinkerRunAction(object):
    """
    Starts a Tinker run and its watcher in background threads and relays their reports to the progress dialog and
    the view.
    :param view: Object with a do_load_second_model_from_pdb_file(path) method, a ConsoleView if None.
    :param mod: Loaded data model.
    :param parallel: TinkerRunner.PARALLEL
    :param refinement: TinkerRunner.REFINEMENT
    :param models: Number of structures to generate.
    :param dialog: (optional) Progress dialog, a ConsoleProgressDialog by default.
    :param runner: (optional) TinkerRunner used by the run.
    :param temp_dir: (optional) Parent of the run folder, config TEMP_DIR by default.
    """
    def __init__(self, view, mod, parallel=TinkerRunner.PARALLEL.NONE,
                 refinement=TinkerRunner.REFINEMENT.MINIMIZATION, models:int=1, dialog=None, runner=None,
                 temp_dir:str|None=None):
        if view is None:
            view = ConsoleView(mod)
        if dialog is None:
            dialog = ConsoleProgressDialog(view, self, models)
        if temp_dir is None:
            temp_dir = config.temp_dir()
        self.view = view
        self.dialog = dialog
        self.tinker_run = None
        self.watcher = None
        self.pool = None
        self.tmp_dir = None
        try:
            self.tmp_dir = create_tmp_dir(temp_dir, "tinker")
        except IOError as e:
            log("error", "Error: {}".format(e))
            return
        self.tinker_run = TinkerRun(self, mod, parallel, refinement, models, self.tmp_dir, runner=runner)
        self.watcher = TinkerWatcher(self.tmp_dir, self, self.tinker_run)
        self.pool = ThreadPool("Tinker")
        self.pool.add(self.tinker_run, name="TinkerRun")
        self.pool.add(self.watcher, name="TinkerWatcher")
        self.pool.start()
        self.dialog.create_gui()

    def __repr__(self):
        return "<cm.TinkerRunAction {}>".format(self.tmp_dir)

    def send_status(self, s):
        self.dialog.set_state(s)
        if s in (TinkerRunner.STATE.ERROR, TinkerRunner.STATE.CANCELLED):
            self.dialog.dispose()

    def cancel(self):
        if self.watcher is not None:
            self.watcher.stop()
        if self.tinker_run is not None:
            self.tinker_run.cancel()

    def return_result(self, string:str):
        self.view.do_load_second_model_from_pdb_file(string)
        self.dialog.dispose()

    def files_done(self, done:int):
        self.dialog.files_done(done)

    def is_running(self) -> bool:
        return self.pool is not None and self.pool.is_alive()

    def wait(self, timeout:float|None=None) -> dict:
        """
        Blocks until the run and the watcher end.
        """
        if self.pool is None:
            return {}
        return self.pool.wait(timeout)
