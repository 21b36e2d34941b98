import os, shutil
import pytest

from cmview.datasources import PdbFileModel
from cmview.tinker import TinkerRunAction, TinkerRun, TinkerWatcher, ConsoleProgressDialog, ConsoleView
from cmview.tinker import create_tmp_dir
from cmview.tools.tinker import TinkerRunner
from cmview.utilities.exceptions import TinkerError, TinkerCancelled, ModelConstructionError


STATE = TinkerRunner.STATE


class FakeAction(object):
    def __init__(self):
        self.states = []
        self.results = []
        self.done = []

    def send_status(self, state):
        self.states.append(state)

    def return_result(self, path):
        self.results.append(path)

    def files_done(self, n):
        self.done.append(n)


class FakeRun(object):
    def __init__(self, finished=True):
        self.finished = finished

    def is_finished(self):
        return self.finished


class FakeRunner(object):
    """
    Writes two distgeom structures and the selected model without running Tinker.
    """
    def __init__(self, pdb_file, error=None):
        self.pdb_file = pdb_file
        self.error = error
        self.cancelled = False
        self.args = None

    def reconstruct(self, resnames, serials, contacts, models, out_dir, refinement=None, parallel=None,
                    dist_cutoff=8.0, callback=None):
        self.args = (resnames, serials, list(contacts), models, refinement, parallel, dist_cutoff)
        callback(STATE.INIT)
        if self.error is not None:
            raise self.error
        for n in range(models):
            open(os.path.join(out_dir, "prot.{:03d}".format(n+1)), "w").close()
        callback(STATE.FINISHED)
        path = os.path.join(out_dir, "prot_best.pdb")
        shutil.copy(self.pdb_file, path)
        return path

    def cancel(self):
        self.cancelled = True


class FakeView(object):
    def __init__(self):
        self.loaded = []

    def do_load_second_model_from_pdb_file(self, path):
        self.loaded.append(path)


class FakeDialog(object):
    def __init__(self):
        self.states = []
        self.done = []
        self.created = False
        self.disposed = False

    def create_gui(self):
        self.created = True

    def set_state(self, state):
        self.states.append(state)

    def files_done(self, n):
        self.done.append(n)

    def dispose(self):
        self.disposed = True


@pytest.fixture
def model(pdb_file):
    return PdbFileModel(pdb_file).load("A")



def test_create_tmp_dir(tmp_path):
    path = create_tmp_dir(str(tmp_path), "tinker")
    assert os.path.isdir(path)
    assert os.path.basename(path).startswith("tinker")
    assert create_tmp_dir(str(tmp_path), "tinker") != path
    with pytest.raises(IOError):
        create_tmp_dir(str(tmp_path / "missing"), "tinker")


def test_watcher(tmp_path):
    action = FakeAction()
    watcher = TinkerWatcher(str(tmp_path), action, FakeRun(finished=True), interval=0.01)
    assert watcher.check() == 0
    for name in ("prot.001", "prot.002", "prot.xyz"):
        (tmp_path / name).write_text("")
    assert watcher() == 2
    assert action.done == [2]
    assert watcher.check() == 2
    assert action.done == [2]


def test_watcher_stop(tmp_path):
    (tmp_path / "prot.001").write_text("")
    action = FakeAction()
    watcher = TinkerWatcher(str(tmp_path), action, FakeRun(finished=False), interval=0.01)
    watcher.stop()
    assert watcher.is_stopped()
    assert watcher() == 0
    assert action.done == []


def test_run(tmp_path, model, pdb_file):
    action = FakeAction()
    runner = FakeRunner(pdb_file)
    run = TinkerRun(action, model, TinkerRunner.PARALLEL.NONE, TinkerRunner.REFINEMENT.MINIMIZATION, 2,
                    str(tmp_path), runner=runner)
    assert not run.is_finished()
    path = run()
    assert run.is_finished()
    assert path == os.path.join(str(tmp_path), "prot_best.pdb")
    assert action.results == [path]
    assert action.states == [STATE.INIT, STATE.FINISHED]
    resnames, serials, contacts, models, refinement, parallel, cutoff = runner.args
    assert resnames == ["ALA", "GLY", "ALA", "ALA", "GLY", "ALA"]
    assert serials == [1, 2, 3, 4, 5, 6]
    assert len(contacts) == 9
    assert (models, refinement, cutoff) == (2, TinkerRunner.REFINEMENT.MINIMIZATION, 8.0)

    run.cancel()
    assert runner.cancelled


@pytest.mark.parametrize("error,state", [(TinkerError("failed"), STATE.ERROR),
                                         (TinkerCancelled("cancelled"), STATE.CANCELLED),
                                         (FileNotFoundError("prot.seq missing"), STATE.ERROR),
                                         (ValueError("bad xyz line"), STATE.ERROR)])
def test_run_errors(tmp_path, model, pdb_file, error, state):
    action = FakeAction()
    run = TinkerRun(action, model, None, None, 1, str(tmp_path), runner=FakeRunner(pdb_file, error=error))
    assert run() is None
    assert run.is_finished()
    assert run.error is error
    assert action.states == [STATE.INIT, state]
    assert action.results == []


def test_run_view_error(tmp_path, model, pdb_file):
    class FailingAction(FakeAction):
        def return_result(self, path):
            raise ModelConstructionError("unreadable result: {}".format(path))

    action = FailingAction()
    run = TinkerRun(action, model, None, None, 1, str(tmp_path), runner=FakeRunner(pdb_file))
    assert run() is None
    assert isinstance(run.error, ModelConstructionError)
    assert action.states == [STATE.INIT, STATE.FINISHED, STATE.ERROR]



def test_action(tmp_path, model, pdb_file):
    view, dialog = FakeView(), FakeDialog()
    action = TinkerRunAction(view, model, models=3, dialog=dialog, runner=FakeRunner(pdb_file),
                             temp_dir=str(tmp_path))
    returns = action.wait(timeout=30)
    assert not action.is_running()
    assert os.path.dirname(action.tmp_dir) == str(tmp_path)

    path = os.path.join(action.tmp_dir, "prot_best.pdb")
    assert returns["TinkerRun"] == path
    assert returns["TinkerWatcher"] == 3
    assert view.loaded == [path]
    assert dialog.created
    assert dialog.disposed
    assert dialog.states == [STATE.INIT, STATE.FINISHED]
    assert dialog.done[-1] == 3


@pytest.mark.parametrize("error", [TinkerError("failed"), OSError("disk full")])
def test_action_error(tmp_path, model, pdb_file, error):
    view, dialog = FakeView(), FakeDialog()
    action = TinkerRunAction(view, model, dialog=dialog, runner=FakeRunner(pdb_file, error=error),
                             temp_dir=str(tmp_path))
    returns = action.wait(timeout=30)
    assert returns["TinkerRun"] is None
    assert action.tinker_run.error is error
    assert view.loaded == []
    assert dialog.states == [STATE.INIT, STATE.ERROR]
    assert dialog.disposed


def test_action_tmp_dir_error(tmp_path, model, pdb_file):
    action = TinkerRunAction(FakeView(), model, dialog=FakeDialog(), runner=FakeRunner(pdb_file),
                             temp_dir=str(tmp_path / "missing"))
    assert action.tinker_run is None
    assert not action.is_running()
    assert action.wait() == {}


def test_action_cancel(tmp_path, model, pdb_file):
    runner = FakeRunner(pdb_file)
    action = TinkerRunAction(FakeView(), model, dialog=FakeDialog(), runner=runner, temp_dir=str(tmp_path))
    action.cancel()
    action.wait(timeout=30)
    assert runner.cancelled
    assert action.watcher.is_stopped()



def test_console_view(model, pdb_file):
    view = ConsoleView(model)
    second = view.do_load_second_model_from_pdb_file(pdb_file)
    assert view.second_model is second
    assert second.loaded_graph_id == "1abcA_2"
    assert set(second.get_contacts()) == set(model.get_contacts())


def test_console_dialog(model):
    dialog = ConsoleProgressDialog(ConsoleView(model), None, 4)
    dialog.create_gui()
    assert dialog.visible
    dialog.set_state(STATE.REFINEMENT)
    dialog.files_done(2)
    assert (dialog.state, dialog.done) == (STATE.REFINEMENT, 2)
    dialog.dispose()
    assert not dialog.visible
