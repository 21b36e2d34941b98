import threading

from ..tools.tinker import TinkerRunner
from ..utilities.exceptions import TinkerError, TinkerCancelled
from ..utilities.logging import log



class TinkerRun(object):
    """
    Background job reconstructing the structure of a loaded model with Tinker. States are reported with
    action.send_status, the selected structure with action.return_result.
    """
    def __init__(self, action, model, parallel, refinement, models:int, tmp_dir:str, runner:TinkerRunner|None=None):
        if runner is None:
            runner = TinkerRunner()
        self.action = action
        self.model = model
        self.parallel = parallel
        self.refinement = refinement
        self.models = models
        self.tmp_dir = tmp_dir
        self.runner = runner
        self.result = None
        self.error = None
        self._finished = threading.Event()

    def __repr__(self):
        return "<cm.TinkerRun {} models:{} {}>".format(self.model, self.models, self.refinement)

    def is_finished(self) -> bool:
        return self._finished.is_set()

    def cancel(self):
        self.runner.cancel()

    def __call__(self):
        try:
            resnames = [r.get_resname() for r in self.model.chain.residues()]
            path = self.runner.reconstruct(resnames, self.model.get_serials(), self.model.get_contacts(),
                                           self.models, self.tmp_dir, refinement=self.refinement,
                                           parallel=self.parallel, dist_cutoff=self.model.dist_cutoff,
                                           callback=self.action.send_status)
            self.action.return_result(path)
            self.result = path
        except TinkerCancelled as e:
            log("warning", "Tinker run cancelled: {}".format(e))
            self.error = e
            self.action.send_status(TinkerRunner.STATE.CANCELLED)
        except TinkerError as e:
            log("error", "Tinker run failed: {}".format(e))
            self.error = e
            self.action.send_status(TinkerRunner.STATE.ERROR)
        except Exception as e:
            log("error", "Tinker run failed ({}): {}".format(type(e).__name__, e))
            self.error = e
            self.action.send_status(TinkerRunner.STATE.ERROR)
        finally:
            self._finished.set()
        return self.result
