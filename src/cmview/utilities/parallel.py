import os, threading, psutil
from ..utilities.logging import log



cpu_count = psutil.cpu_count(logical=False) or 1
is_cluster = False
use_max = False
if os.environ.get("SLURM_JOB_ID", None) is not None:
    cpu_count = int(os.environ.get("SLURM_CPUS_ON_NODE", cpu_count))
    use_max = True
    is_cluster = True


if use_max or cpu_count <= 1:
    avail_cpus = cpu_count
else:
    avail_cpus = cpu_count -1



def split_iterable(iterable:list|tuple, n_parts:int|str="auto") -> list[list]:
    """
    Splits a sequence into consecutive chunks.
    :param iterable: List or tuple to split.
    :param n_parts: Number of chunks. "auto" uses the available CPUs, "max" all the physical ones.
    :return: List of lists, empty chunks are dropped.
    """
    if n_parts == "auto":
        n_parts = avail_cpus
    elif n_parts == "max":
        n_parts = cpu_count

    assert type(n_parts) == int
    if n_parts <= 1 or len(iterable) <= 1:
        return [list(iterable)]

    n_parts = min(n_parts, len(iterable))
    part_size, rest = divmod(len(iterable), n_parts)
    out = []
    start = 0
    for n in range(n_parts):
        end = start + part_size + (1 if n < rest else 0)
        out.append(list(iterable[start:end]))
        start = end
    return out





class ThreadPool(object):
    """
    Minimal pool of named threads. Threads are started with start() and joined with wait(), returns and errors
    are collected per thread.
    """
    def __init__(self, name="ThreadPool"):
        self.name = name
        self.threads = {}
        self.returns = {}

    def __len__(self):
        return len(self.threads)

    def __repr__(self):
        counts = {}
        for t in self.threads.values():
            counts[t["status"]] = counts.get(t["status"], 0) + 1
        return "<{} {}>".format(self.name, " ".join(["{}:{}".format(k, v) for k, v in counts.items()]))


    class Thread(threading.Thread):
        def __init__(self, *args, **kwargs):
            kwargs.setdefault("daemon", True)
            super().__init__(*args, **kwargs)
            self.ret = None
            self.error = None

        def run(self):
            try:
                self.ret = self._target(*self._args, **self._kwargs)
            except Exception as e:
                self.error = e
                log("error", "in {}: {}".format(self.name, e))
            finally:
                del self._target, self._args, self._kwargs


    def add(self, fun, *args, name=None, **kwargs) -> Thread:
        if name is None:
            name = "{} {}".format(self.name, len(self.threads))
        t = self.Thread(target=fun, args=args, kwargs=kwargs, name=name)
        self.threads[name] = {"thread": t, "fun": fun, "status": "pending"}
        return t

    def start(self, wait=False):
        pending_threads = {k: v for k, v in self.threads.items() if v["status"] == "pending"}
        for k, t in pending_threads.items():
            t["thread"].start()
            t["status"] = "running"
        log("debug", "{}: Running {} tasks (wait={})".format(self.name, len(pending_threads), wait))
        if wait:
            return self.wait()
        return self

    def wait(self, timeout:float|None=None) -> dict:
        running_threads = {k: v for k, v in self.threads.items() if v["status"] == "running"}
        for k, t in running_threads.items():
            t["thread"].join(timeout)
            if t["thread"].is_alive():
                continue
            self.returns[k] = t["thread"].ret
            if t["thread"].error is not None:
                t["status"] = "error"
            else:
                t["status"] = "done"
        return self.returns

    def errors(self) -> list[Exception]:
        return [t["thread"].error for t in self.threads.values() if t["thread"].error is not None]

    def is_alive(self) -> bool:
        return any(t["thread"].is_alive() for t in self.threads.values())
