import os, subprocess, time, random
import xmlrpc.client

from ..utilities.logging import log
from ..utilities.strings import clean_string
from ..utilities.exceptions import PymolCommunicationError
from ..utilities import config



# colours for triangles, one is chosen randomly from this list
triangle_colours = ["blue", "red", "yellow", "magenta", "cyan", "tv_blue", "tv_green", "salmon", "warmpink"]

triangle_transparency = 0.7





class PymolServer(object):
    """
    Client of the XML-RPC server PyMol starts with "pymol -R". Every command is a line of the PyMol command
    language, executed on the server through its "do" method.
    :param url: Server url, config PYMOL_SERVER_URL by default.
    """
    def __init__(self, url:str|None=None):
        if url is None:
            url = config.get("PYMOL_SERVER_URL")
        self.url = url
        self.proxy = xmlrpc.client.ServerProxy(url, allow_none=True)
        self.process = None

    def __repr__(self):
        return "<cm.PymolServer {}>".format(self.url)

    def send(self, command:str):
        log("debug", "(PyMol) {}".format(command))
        try:
            self.proxy.do(command)
        except (OSError, xmlrpc.client.Error) as e:
            raise PymolCommunicationError("Could not send command to PyMol server at {}: {}".format(self.url, e)) from e

    def is_alive(self) -> bool:
        try:
            self.proxy.get_names()
            return True
        except (OSError, xmlrpc.client.Error):
            return False

    @classmethod
    def launch(cls, executable:str|None=None, url:str|None=None, wait:float=15.0):
        """
        Starts PyMol with its remote server enabled and waits for the server to answer.
        :param executable: PyMol executable, config PYMOL_EXECUTABLE by default.
        :param url: Server url, config PYMOL_SERVER_URL by default.
        :param wait: Seconds to wait for the server.
        :return: PymolServer connected to the new process.
        """
        if executable is None:
            executable = config.get("PYMOL_EXECUTABLE")
        server = cls(url)
        cmd = [executable, "-R"]
        log("debug", "$ " + " ".join(cmd))
        try:
            server.process = subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except OSError as e:
            raise PymolCommunicationError("Could not start PyMol ({}): {}".format(executable, e)) from e
        start = time.time()
        while time.time() - start < wait:
            if server.is_alive():
                return server
            if server.process.poll() is not None:
                break
            time.sleep(0.5)
        raise PymolCommunicationError("PyMol server did not start at {}".format(server.url))





class PymolScript(object):
    """
    Class to build PyMol scripts from predetermined functions or custom ones. When bound to a server, every command
    is sent as soon as it is added.
    :param name: Name of the script. Will de set as a filename.
    :param folder: Folder the script is written to, config TEMP_DIR by default.
    :param server: (optional) PymolServer (or any object with a send(str) method).
    :return: PymolScript Object.
    """
    def __init__(self, name="temp_pymol_script", folder:str|None=None, pymol_path:str|None=None, server=None):
        if pymol_path is None:
            pymol_path = config.get("PYMOL_EXECUTABLE")
        if folder is None:
            folder = config.temp_dir()
        self.pymol_path = pymol_path
        self.name = clean_string(name)
        self.folder = folder
        self.server = server
        self.commands = []
        self.path = None


    def write_script(self, filename:str=None) -> str:
        """
        Writes the stored commands to a file. The file can be run as a PyMol script.
        :param filename: (optional) File name without extension. Uses the script name as default.
        :return: Path to the file.
        """
        if filename is None:
            filename = self.name
        os.makedirs(self.folder, exist_ok=True)
        filepath = os.path.join(self.folder, filename+".pml")
        with open(filepath, "w") as f:
            for cmd in self.commands:
                f.write(repr(cmd)+"\n")
        self.path = os.path.abspath(filepath)
        return self.path


    def execute(self, wait=False):
        """
        Runs the written script with the PyMol executable.
        :param wait: Block until PyMol exits.
        """
        if self.path is None:
            self.write_script()
        cmd = [self.pymol_path, self.path]

        log("debug", "$ " + " ".join(cmd))
        if wait:
            return subprocess.run(cmd)
        return subprocess.Popen(cmd)


    def add(self, fun, *args, **kwargs):
        """
        Generates a command object and adds the command to the script. Can be used to insert custom functions.
        Beware when adding parameters as strings, they must be quoted ("'string'").
        :param fun: Name(string) of function to execute.
        :param args: Args to pass the function. "strings" -> variables, "'strings'" -> strings.
        :param kwargs: Same as args but with keywords.
        :return: Generated Command object.
        """
        c = self.Command(fun, *args, **kwargs)
        self.commands.append(c)
        if self.server is not None:
            self.server.send(repr(c))
        return c

    def raw(self, line:str):
        """
        Adds a line of the PyMol command language as is.
        """
        return self.add(line, raw=True)



    class Command(object):
        """
        Class for commands stored PyMol script.
        :param fun: Name(string) of function to execute.
        :param args: Args to pass the function. "strings" -> variables, "'strings'" -> strings.
        :param is_cmd: whether the command is within pymol.cmd.
        :param raw: fun is a complete command language line.
        :param kwargs: Same as args but with keywords.
        :return: Command object.
        """
        def __init__(self, fun:str, *args, is_cmd=True, raw=False, **kwargs):
            self.fun = fun
            self.args = args
            self.kwargs = kwargs
            self.is_cmd = is_cmd
            self.raw = raw
            self.cmd = None

        def __repr__(self):
            if self.cmd is None:
                self.construct_command()
            return self.cmd


        def construct_command(self) -> str:
            """
            Generates final string to append to script. Uses parameters stored in the instance.
            :return: Generated string.
            """
            if self.raw:
                self.cmd = self.fun
                return self.cmd
            parts = [str(a) for a in self.args]
            parts.extend([f"{k}={v}" for k, v in self.kwargs.items()])
            c = "{}({})".format(self.fun, ", ".join(parts))
            if self.is_cmd:
                c = "cmd."+ c
            self.cmd = c
            return self.cmd

    @staticmethod
    def _to_str(string):
        return "'{}'".format(str(string).replace("'", "\\'"))


    def load(self, path:str, name:str, **kwargs):
        args = self._to_str(os.path.abspath(path)), self._to_str(name)
        return self.add("load", *args, **kwargs)

    def hide(self, representation:str, sele:str|None=None):
        args = [self._to_str(representation)]
        if sele is not None:
            args.append(self._to_str(sele))
        return self.add("hide", *args)

    def show(self, representation:str, sele:str|None=None):
        args = [self._to_str(representation)]
        if sele is not None:
            args.append(self._to_str(sele))
        return self.add("show", *args)

    def set(self, setting:str, value):
        return self.add("set", self._to_str(setting), value)

    def run(self, path:str):
        return self.raw("run {}".format(path))

    def distance(self, name:str, sele1:str, sele2:str):
        return self.add("distance", self._to_str(name), self._to_str(sele1), self._to_str(sele2))

    def select(self, name:str, sele:str):
        return self.add("select", self._to_str(name), self._to_str(sele))

    def color(self, sele:str, color:str="black"):
        return self.add("color", self._to_str(color), self._to_str(sele))

    def delete(self, name:str):
        return self.add("delete", self._to_str(name))

    def triangle(self, name:str, i:int, j:int, k:int, color:str, transparency:float):
        """
        Calls the triangle function defined by pymol_functions.py in the PyMol session.
        """
        return self.add("triangle", self._to_str(name), i, j, k, self._to_str(color), transparency, is_cmd=False)





class PyMolAdaptor(object):
    """
    Sends edge selections and common neighbourhoods of a contact map to a PyMol server.
    - edge selections are shown as PyMol distance objects between C-alpha atoms
    - common neighbours (an EdgeNbh) are shown as transparent CGO triangles
    :param pymol_server_url: PyMol server url, config PYMOL_SERVER_URL by default.
    :param pdb_code: PDB code (or loaded graph id) of the structure.
    :param chain_code: Chain shown, blank codes are left out of the selections.
    :param file_name: Structure file loaded into PyMol.
    :param server: (optional) Object with a send(str) method used instead of a PymolServer.
    :param offline: Only record the commands (see save_session_script), no server is contacted.
    """
    def __init__(self, pymol_server_url:str|None, pdb_code:str, chain_code:str, file_name:str, server=None,
                 functions_script:str|None=None, offline:bool=False):
        if server is None and not offline:
            server = PymolServer(pymol_server_url)
        if functions_script is None:
            functions_script = config.get("PYMOL_FUNCTIONS_SCRIPT")
        self.server = server
        self.pdb_file_name = file_name
        self.accession_code = pdb_code
        self.chain_code = chain_code.strip() if chain_code else ""
        self.pymol_object_name = clean_string(pdb_code + self.chain_code, allow=("_",))
        self.script = PymolScript(self.pymol_object_name, server=server)

        self.script.load(self.pdb_file_name, self.pymol_object_name)
        self.script.hide("lines")
        self.script.show("cartoon")
        self.script.set("dash_gap", 0)
        self.script.set("dash_width", 2.5)
        self.script.run(functions_script)

    def __repr__(self):
        return "<cm.PyMolAdaptor {} {}>".format(self.pymol_object_name, self.server)


    def _residue_sele(self, residues:str) -> str:
        sele = self.pymol_object_name
        if self.chain_code != "":
            sele += " and chain {}".format(self.chain_code)
        return "{} and resi {}".format(sele, residues)


    def set_distance(self, i:int, j:int, sel_obj_name:str):
        """
        Creates an edge between the C-alpha atoms of the given residues in the chain.
        """
        self.script.distance(sel_obj_name,
                             self._residue_sele(i) + " and name ca",
                             self._residue_sele(j) + " and name ca")


    def create_selection_object(self, sel_obj_name:str, residues:list[int]):
        """
        Creates a named selection of residues, duplicates are removed keeping the order. Empty lists are skipped.
        """
        unique = list(dict.fromkeys(residues))
        if len(unique) == 0:
            log("warning", "Empty selection {} not sent to PyMol".format(sel_obj_name))
            return None
        return self.script.select(sel_obj_name, self._residue_sele("+".join([str(r) for r in unique])))


    def show_triangles(self, common_nbh, pymol_nbh_serial:int):
        """
        Draws one triangle (i, j, k) per common neighbour k and selects all the residues involved.
        :param common_nbh: EdgeNbh of the edge (i, j).
        :param pymol_nbh_serial: Serial used to name the PyMol objects.
        """
        i = common_nbh.i_resser
        j = common_nbh.j_resser
        residues = [i, j]
        trinum = 1
        for k in common_nbh.keys():
            colour = self.triangle_colour(trinum)
            name = "{}Nbh{}Tri{}".format(self.pymol_object_name, pymol_nbh_serial, trinum)
            self.script.triangle(name, i, j, k, colour, triangle_transparency)
            trinum += 1
            residues.append(k)
        if trinum == 1:
            log("warning", "Edge {}-{} has no common neighbours".format(i, j))
            return
        self.create_selection_object("{}Nbh{}Nodes".format(self.pymol_object_name, pymol_nbh_serial), residues)


    def edge_selection(self, pymol_sel_serial:int, sel_contacts):
        """
        Shows the contacts as distance objects and selects the residues involved.
        :param pymol_sel_serial: Serial used to name the PyMol objects.
        :param sel_contacts: ContactList (or any iterable of objects with i and j).
        """
        residues = []
        sel_obj_name = "{}Sel{}".format(self.pymol_object_name, pymol_sel_serial)
        for cont in sel_contacts:
            self.set_distance(cont.i, cont.j, sel_obj_name)
            residues.append(cont.i)
            residues.append(cont.j)
        if len(residues) == 0:
            log("warning", "Empty edge selection {}".format(pymol_sel_serial))
            return
        self.script.hide("labels")
        self.create_selection_object(sel_obj_name + "Nodes", residues)


    @staticmethod
    def triangle_colour(trinum:int) -> str:
        """
        Colour of the triangle number trinum, drawn from a generator seeded with trinum // 2. The index is taken
        modulo trinum, and modulo the palette length only past the last palette colour.
        """
        generator = random.Random(trinum // 2)
        index = (generator.randrange(trinum) * 23) % trinum
        if trinum > len(triangle_colours):
            index = index % len(triangle_colours)
        return triangle_colours[index]


    def save_session_script(self, filename:str|None=None) -> str:
        """
        Writes every command sent so far as a .pml script.
        """
        return self.script.write_script(filename)
