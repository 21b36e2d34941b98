import os, re, shutil, subprocess, threading
from enum import Enum

from ..utilities.logging import log
from ..utilities.exceptions import TinkerError, TinkerCancelled, PdbLoadError
from ..utilities.sequences import to_tinker
from ..utilities.parallel import ThreadPool, split_iterable, avail_cpus
from ..utilities import config
from ..structure.imports import loadPDB
from ..graphs import RIGraph



class TinkerRunner(object):
    """
    Reconstructs 3D models from the contacts of a chain with the Tinker programs protein, distgeom, minimize (or
    anneal) and xyzpdb. Programs run in out_dir, each refined model in its own subfolder.
    :param bin_dir: Folder of the Tinker binaries, config TINKER_BIN_DIR (or PATH) by default.
    :param forcefield: Parameter file, config TINKER_FORCEFIELD by default.
    :param force_constant: Restraint force constant, config TINKER_FORCE_CONSTANT by default.
    """

    class PARALLEL(Enum):
        NONE = "none"
        LOCAL = "local"

    class REFINEMENT(Enum):
        MINIMIZATION = "minimization"
        SIMULATED_ANNEALING = "annealing"

    class STATE(Enum):
        INIT = "Initialising"
        STRUCTURES = "Generating structures"
        REFINEMENT = "Refining structures"
        SELECTION = "Selecting best structure"
        FINISHED = "Finished"
        ERROR = "Error"
        CANCELLED = "Cancelled"

    BASE_NAME = "prot"
    CA_LOWER_BOUND = 3.8
    RMS_GRADIENT = 0.01
    # Enough empty answers to accept the default of every remaining interactive prompt
    DEFAULT_ANSWERS = "\n" * 20

    def __init__(self, bin_dir:str|None=None, forcefield:str|None=None, force_constant:float|None=None):
        if bin_dir is None:
            bin_dir = config.get("TINKER_BIN_DIR")
        if forcefield is None:
            forcefield = config.get("TINKER_FORCEFIELD")
        if force_constant is None:
            force_constant = config.get_float("TINKER_FORCE_CONSTANT")
        self.bin_dir = bin_dir
        self.forcefield = forcefield
        self.force_constant = force_constant
        self.cancelled = threading.Event()
        self.processes = []
        self.lock = threading.Lock()

    def __repr__(self):
        return "<cm.TinkerRunner {} {}>".format(self.bin_dir or "PATH", self.forcefield)


    def program(self, name:str) -> str:
        if self.bin_dir:
            path = os.path.join(self.bin_dir, name)
            if os.path.isfile(path):
                return path
        else:
            path = shutil.which(name)
            if path is not None:
                return path
        raise TinkerError("Tinker program not found: {} (TINKER_BIN_DIR={})".format(name, self.bin_dir), program=name)


    def run_program(self, name:str, args:list, cwd:str, stdin:str|None=None) -> str:
        """
        Runs a Tinker program, answering its prompts from stdin. Output is saved to <cwd>/<name>.log.
        :return: Program output.
        """
        if self.cancelled.is_set():
            raise TinkerCancelled("Run cancelled before {}".format(name), program=name)
        if stdin is None:
            stdin = self.DEFAULT_ANSWERS
        cmd = [self.program(name)] + [str(a) for a in args]
        log(3, "$ " + " ".join(cmd))
        try:
            p = subprocess.Popen(cmd, cwd=cwd, stdin=subprocess.PIPE, stdout=subprocess.PIPE,
                                 stderr=subprocess.STDOUT, text=True)
        except OSError as e:
            raise TinkerError("Could not run {}: {}".format(name, e), program=name) from e
        with self.lock:
            self.processes.append(p)
        try:
            out, _ = p.communicate(stdin)
        finally:
            with self.lock:
                self.processes.remove(p)
        with open(os.path.join(cwd, "{}.log".format(name)), "a") as f:
            f.write(out or "")
        if self.cancelled.is_set():
            raise TinkerCancelled("Run cancelled during {}".format(name), program=name)
        if p.returncode != 0:
            raise TinkerError("{} exited with status {}".format(name, p.returncode), program=name)
        return out or ""


    def cancel(self):
        self.cancelled.set()
        with self.lock:
            for p in self.processes:
                if p.poll() is None:
                    log("warning", "Terminating Tinker process {}".format(p.pid))
                    p.terminate()



    @staticmethod
    def protein_input(base_name:str, title:str, forcefield:str, resnames:list[str]) -> str:
        """
        Answers to the prompts of "protein": output name, title, parameter file, one residue per line, an empty
        line closing the sequence and N (do not cyclize).
        """
        lines = [base_name, title, forcefield]
        lines.extend([to_tinker(r) for r in resnames])
        lines.extend(["", "N", ""])
        return "\n".join(lines)


    @staticmethod
    def read_ca_atoms(xyz_path:str) -> list[int]:
        """
        Tinker atom numbers of the CA atoms of a .xyz file, in sequence order.
        """
        ca = []
        with open(xyz_path) as f:
            next(f, None)
            for line in f:
                fields = line.split()
                if len(fields) >= 2 and fields[1] == "CA":
                    ca.append(int(fields[0]))
        return ca


    @classmethod
    def restraint_lines(cls, contacts, serials:list[int], ca_atoms:list[int], upper:float,
                        force_constant:float) -> list[str]:
        """
        RESTRAIN-DISTANCE keywords between the CA atoms of every contact. Residue serials are mapped to CA atoms by
        their position in serials.
        """
        if len(serials) != len(ca_atoms):
            raise TinkerError("{} residues but {} CA atoms in the Tinker model".format(len(serials), len(ca_atoms)))
        index = {s: n for n, s in enumerate(serials)}
        lines = []
        for c in contacts:
            if c.i not in index or c.j not in index:
                log("warning", "Contact {}-{} outside of the sequence, skipped".format(c.i, c.j))
                continue
            lines.append("RESTRAIN-DISTANCE {} {} {:.1f} {:.1f} {:.1f}".format(
                ca_atoms[index[c.i]], ca_atoms[index[c.j]], force_constant, cls.CA_LOWER_BOUND, upper))
        return lines


    def write_key_file(self, path:str, restraints:list[str]) -> str:
        with open(path, "w") as f:
            f.write("parameters {}\n\n".format(self.forcefield))
            for line in restraints:
                f.write(line + "\n")
        return path


    @staticmethod
    def parse_energy(output:str) -> float|None:
        for pattern in (r"Final Function Value\s*:\s*(-?\d+\.?\d*)", r"Total Potential Energy\s*:\s*(-?\d+\.?\d*)"):
            found = re.findall(pattern, output)
            if len(found) > 0:
                return float(found[-1])
        return None


    @classmethod
    def structure_files(cls, folder:str, base_name:str|None=None) -> list[str]:
        """
        Numbered structures written by distgeom (prot.001, prot.002...), sorted.
        """
        if base_name is None:
            base_name = cls.BASE_NAME
        pattern = re.compile(r"^{}\.\d{{3,}}$".format(re.escape(base_name)))
        if not os.path.isdir(folder):
            return []
        return sorted([os.path.join(folder, f) for f in os.listdir(folder) if pattern.match(f)])


    @staticmethod
    def latest_version(folder:str, file_name:str) -> str|None:
        """
        Newest Tinker version of a file: file_name, file_name_2, file_name_3...
        """
        pattern = re.compile(r"^{}(_(\d+))?$".format(re.escape(file_name)))
        best, best_v = None, -1
        for f in os.listdir(folder):
            m = pattern.match(f)
            if m is None:
                continue
            v = int(m.group(2)) if m.group(2) else 1
            if v > best_v:
                best, best_v = os.path.join(folder, f), v
        return best


    @staticmethod
    def contact_recovery(model_graph, contacts, serials:list[int]) -> float:
        """
        Fraction of target contacts present in a reconstructed model, whose residues are numbered from 1.
        """
        if len(contacts) == 0:
            return 0.0
        index = {s: n+1 for n, s in enumerate(serials)}
        found = 0
        for c in contacts:
            if c.i in index and c.j in index and model_graph.has_contact(index[c.i], index[c.j]):
                found += 1
        return found / len(contacts)



    def reconstruct(self, resnames:list[str], serials:list[int], contacts, models:int, out_dir:str,
                    refinement=None, parallel=None, dist_cutoff:float=8.0, callback=None) -> str:
        """
        Runs the whole reconstruction.
        :param resnames: Three letter residue names of the chain.
        :param serials: Residue serials, same order as resnames.
        :param contacts: Contacts (CA based) to restrain.
        :param models: Number of structures generated by distgeom.
        :param out_dir: Working folder.
        :param refinement: REFINEMENT, MINIMIZATION by default.
        :param parallel: PARALLEL, NONE by default.
        :param dist_cutoff: Upper bound of the restraints.
        :param callback: Called with each STATE.
        :return: Path to the selected PDB file.
        """
        if refinement is None:
            refinement = self.REFINEMENT.MINIMIZATION
        if parallel is None:
            parallel = self.PARALLEL.NONE
        if callback is None:
            callback = lambda state: None
        base = self.BASE_NAME
        os.makedirs(out_dir, exist_ok=True)

        callback(self.STATE.INIT)
        log("header", "Tinker: building extended chain of {} residues".format(len(resnames)))
        self.run_program("protein", [], out_dir,
                         stdin=self.protein_input(base, "cmview reconstruction", self.forcefield, resnames))
        xyz = os.path.join(out_dir, base + ".xyz")
        if not os.path.exists(xyz):
            raise TinkerError("protein did not write {}".format(xyz), program="protein")
        restraints = self.restraint_lines(contacts, serials, self.read_ca_atoms(xyz), dist_cutoff,
                                          self.force_constant)
        key = self.write_key_file(os.path.join(out_dir, base + ".key"), restraints)
        log(1, "{} distance restraints written to {}".format(len(restraints), key))

        callback(self.STATE.STRUCTURES)
        self.run_program("distgeom", [xyz, "-k", key, models], out_dir)
        structures = self.structure_files(out_dir)
        if len(structures) == 0:
            raise TinkerError("distgeom generated no structures", program="distgeom")

        callback(self.STATE.REFINEMENT)
        model_dirs = []
        for n, s in enumerate(structures):
            model_dir = os.path.join(out_dir, "model_{:03d}".format(n+1))
            os.makedirs(model_dir, exist_ok=True)
            shutil.copy(s, os.path.join(model_dir, base + ".xyz"))
            shutil.copy(key, os.path.join(model_dir, base + ".key"))
            shutil.copy(os.path.join(out_dir, base + ".seq"), os.path.join(model_dir, base + ".seq"))
            model_dirs.append(model_dir)

        if parallel == self.PARALLEL.LOCAL and len(model_dirs) > 1:
            pool = ThreadPool("Tinker refinement")
            for part in split_iterable(model_dirs, n_parts=avail_cpus):
                pool.add(self._refine_all, part, refinement)
            results = {}
            for r in pool.start(wait=True).values():
                results.update(r or {})
            errors = pool.errors()
            if len(errors) > 0:
                raise errors[0]
        else:
            results = self._refine_all(model_dirs, refinement)

        callback(self.STATE.SELECTION)
        best = self.select_best(results, contacts, serials, dist_cutoff)
        best_path = os.path.join(out_dir, "{}_best.pdb".format(base))
        shutil.copy(best, best_path)
        log(1, "Selected model: {}".format(best))
        callback(self.STATE.FINISHED)
        return best_path


    def _refine_all(self, model_dirs:list[str], refinement) -> dict:
        return {d: self.refine(d, refinement) for d in model_dirs}


    def refine(self, model_dir:str, refinement) -> dict:
        """
        Refines prot.xyz of a model folder and converts the result to PDB.
        :return: {"pdb": path, "energy": float|None}
        """
        base = self.BASE_NAME
        xyz = base + ".xyz"
        key = base + ".key"
        if refinement == self.REFINEMENT.SIMULATED_ANNEALING:
            out = self.run_program("anneal", [xyz, "-k", key], model_dir)
        else:
            out = self.run_program("minimize", [xyz, "-k", key, self.RMS_GRADIENT], model_dir)
        energy = self.parse_energy(out)
        refined = self.latest_version(model_dir, xyz)
        if refined is None:
            raise TinkerError("No refined coordinates in {}".format(model_dir), program=refinement.value)
        self.run_program("xyzpdb", [os.path.basename(refined), "-k", key], model_dir)
        pdb = self.latest_version(model_dir, base + ".pdb")
        if pdb is None:
            raise TinkerError("xyzpdb wrote no PDB file in {}".format(model_dir), program="xyzpdb")
        return {"pdb": pdb, "energy": energy}


    def select_best(self, results:dict, contacts, serials:list[int], dist_cutoff:float=8.0) -> str:
        """
        Picks the model recovering most of the target contacts (CA graph), ties broken by the lowest energy.
        :param results: Model folder -> {"pdb": path, "energy": float|None}.
        :return: Path to the PDB file of the best model.
        """
        ranked = []
        for d, r in results.items():
            try:
                structure = loadPDB(r["pdb"])
            except PdbLoadError as e:
                log("warning", "Skipping unreadable model {}: {}".format(r["pdb"], e))
                continue
            chain = structure.get_model(1).child_list[0]
            graph = RIGraph.from_chain(chain, "Ca", dist_cutoff)
            score = self.contact_recovery(graph, contacts, serials)
            energy = r["energy"] if r["energy"] is not None else float("inf")
            log(2, "{}: contact recovery {:.3f}, energy {}".format(os.path.basename(d), score, r["energy"]))
            ranked.append((-score, energy, r["pdb"]))
        if len(ranked) == 0:
            raise TinkerError("No readable model to select from")
        return sorted(ranked)[0][2]
