__all__ = ["action", "run", "watcher", "progress"]

from .action import TinkerRunAction, create_tmp_dir
from .run import TinkerRun
from .watcher import TinkerWatcher
from .progress import ConsoleProgressDialog, ConsoleView
