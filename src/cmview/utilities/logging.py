import os, shutil


RED = "\033[91m"
YELLOW = "\033[93m"
RESET = "\033[0m"



def verbosity() -> int:
    return int(os.environ.get("CMVIEW_VERBOSE", 10))


def log(level:int|str=1, *args, **kwargs):
    """
    Prints a message if its level is within the verbosity set by the environment variable "CMVIEW_VERBOSE"
    (10 if unset).
    CMVIEW_VERBOSE == 0 shows errors, warnings and debug messages.
    CMVIEW_VERBOSE == -1 shows errors only.
    CMVIEW_VERBOSE == -2 shows nothing.
    :param level: "error" | "warning" | "debug" | "title" | "header" | 0 (always) | int (indent level)
    :param args: Printed separated by spaces.
    :param kwargs: Passed to print. error=Exception re-raises it, raise_exception=True raises the message.
    """
    if type(level) is str:
        level = level.lower()
    error = kwargs.pop("error", None)
    raise_exception = kwargs.pop("raise_exception", False)
    if level == "error":
        if isinstance(error, Exception):
            raise error
        if raise_exception:
            raise Exception(" ".join([str(a) for a in args]))

    v = verbosity()
    if v <= -2:
        return
    if level == "error":
        print("{}ERROR: {}{}".format(RED, " ".join([str(a) for a in args]), RESET), **kwargs)
        return
    if v <= -1:
        return
    if level == "warning":
        print("{}WARNING: {}{}".format(YELLOW, " ".join([str(a) for a in args]), RESET), **kwargs)
    elif level == "debug":
        print(*args, **kwargs)
    elif v <= 0:
        return
    elif level == 0 or level is None:
        print(*args, **kwargs)
    elif level == "title":
        tprint(*args, **kwargs)
    elif level == "header":
        sprint(*args, **kwargs)
    elif type(level) is int:
        if v >= level:
            print1(*args, space=2*level, **kwargs)
    else:
        print("Unknown log level: {}".format(level))



def tprint(*strings:str, head:int=10, style:str="#", end:str="\n", sep:str=" "): # Section title
    width = shutil.get_terminal_size()[0] - 2
    string = " ".join([str(s) for s in strings])
    tail = max(width - head - len(string), 0)
    print("\n{}{}{}{}{}".format(style*head, sep, string, sep, style*tail), end=end)


def sprint(*strings:str, **kwargs): # Subtitle
    print("\n # " + " ".join([str(s) for s in strings]), **kwargs)


def print1(*strings, space:int=2, **kwargs): # Indented line, lists and tuples are flattened
    flat = []
    for s in strings:
        if type(s) in (list, tuple):
            flat.extend([str(s2) for s2 in s])
        else:
            flat.append(str(s))
    print("{}> {}".format(" " * space, " ".join(flat)), **kwargs)
