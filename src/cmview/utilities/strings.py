from unidecode import unidecode
from ..utilities.logging import log



def clean_string(string:str, allow:list[str]=(".", "_"), remove_newlines:bool=True) -> str:
    """
    Reduces a string to ASCII letters, digits and the allowed characters. Used for PyMol object and script names.
    :param string: String to clean
    :param allow: Special characters kept (default ".", "_")
    :param remove_newlines: Drop "\n" (default True)
    :return: Clean string
    """
    string = unidecode(str(string))
    if remove_newlines:
        string = string.replace("\n", "")
    return "".join([c for c in string if c.isalnum() or c in allow])


def get_digits(string:str, allow:list[str]=("."), integer:bool=False) -> int|float|None:
    """
    Parses the digits of a string, e.g. the target number of "T0123".
    :param string: Target string
    :param allow: Other characters kept (default ".")
    :param integer: Parse as int, float otherwise
    :return: Parsed number, None if there are no digits
    """
    digits = "".join([c for c in unidecode(str(string)) if c.isdigit() or c in allow])
    if digits == "":
        log("warning", "No digits found in: {}".format(string))
        return None
    try:
        return int(digits) if integer else float(digits)
    except ValueError:
        log("warning", "Could not parse digits of: {}".format(string))
        return None
