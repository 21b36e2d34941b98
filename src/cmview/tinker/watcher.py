import threading

from ..tools.tinker import TinkerRunner
from ..utilities.logging import log
from ..utilities import config



class TinkerWatcher(object):
    """
    Polls the folder of a Tinker run and reports the number of generated structures to the action.
    Runs until stop() is called or the run finishes.
    :param tmp_dir: Folder of the run.
    :param action: Object with a files_done(int) method.
    :param run: Object with an is_finished() method.
    :param interval: Seconds between polls, config WATCHER_INTERVAL by default.
    """
    def __init__(self, tmp_dir:str, action, run, interval:float|None=None):
        if interval is None:
            interval = config.get_float("WATCHER_INTERVAL")
        self.tmp_dir = tmp_dir
        self.action = action
        self.run = run
        self.interval = interval
        self.files_done = 0
        self._stopped = threading.Event()

    def __repr__(self):
        return "<cm.TinkerWatcher {} files:{}>".format(self.tmp_dir, self.files_done)

    def count_files(self) -> int:
        return len(TinkerRunner.structure_files(self.tmp_dir))

    def check(self) -> int:
        n = self.count_files()
        if n != self.files_done:
            self.files_done = n
            self.action.files_done(n)
        return n

    def stop(self):
        self._stopped.set()

    def is_stopped(self) -> bool:
        return self._stopped.is_set()

    def __call__(self):
        log("debug", "Watching {}".format(self.tmp_dir))
        while not self._stopped.is_set():
            self.check()
            if self.run.is_finished():
                self.check()
                break
            self._stopped.wait(self.interval)
        log("debug", "Stopped watching {} ({} files)".format(self.tmp_dir, self.files_done))
        return self.files_done
