import argparse, sys

from .datasources import PdbFileModel, PdbCodeModel
from .visualisation.pymol import PyMolAdaptor
from .visualisation.plots import save_contact_map
from .tinker import TinkerRunAction
from .tools.tinker import TinkerRunner
from .utilities.exceptions import ModelConstructionError, PymolCommunicationError, TinkerError
from .utilities.logging import log
from .utilities import config



def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cmview", description="Protein contact maps, PyMol and Tinker")
    parser.add_argument("--config", default=None, help="cmview.cfg file to read")
    sub = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("file", help="PDB/mmCIF file (or PDB code with --pdb-code)")
    common.add_argument("--pdb-code", action="store_true", help="Download the structure from the PDB")
    common.add_argument("-c", "--chain", default="A", help="Chain code (default A)")
    common.add_argument("-m", "--model", type=int, default=1, help="Model serial (default 1)")
    common.add_argument("-t", "--edge-type", default="Ca", help="Contact type: Ca, Cb, C, N, O, BB, SC, ALL")
    common.add_argument("-d", "--cutoff", type=float, default=8.0, help="Distance cutoff in Angstrom")
    common.add_argument("--min-seq-sep", type=int, default=0, help="Minimum sequence separation (0: none)")
    common.add_argument("--max-seq-sep", type=int, default=None,
                        help="Maximum sequence separation (0: none; default 20 for tinker, 0 otherwise)")
    common.add_argument("--ensemble", action="store_true", help="Average the graph over all models")

    contacts = sub.add_parser("contacts", parents=[common], help="Print or export the contact map")
    contacts.add_argument("-o", "--output", default=None, help="CSV file to write the contacts to")
    contacts.add_argument("--plot", default=None, help="Image file to draw the contact map to")

    pymol = sub.add_parser("pymol", parents=[common], help="Show the contacts in PyMol")
    pymol.add_argument("--url", default=None, help="PyMol server url (default config PYMOL_SERVER_URL)")
    pymol.add_argument("--nbh", nargs=2, type=int, metavar=("I", "J"), default=None,
                       help="Show the common neighbourhood of edge I-J instead of the contacts")
    pymol.add_argument("--serial", type=int, default=1, help="Selection serial")
    pymol.add_argument("--offline", action="store_true", help="Write a .pml script and run PyMol on it")

    tinker = sub.add_parser("tinker", parents=[common], help="Reconstruct the structure with Tinker")
    tinker.add_argument("-n", "--models", type=int, default=1, help="Number of structures to generate")
    tinker.add_argument("--refinement", default="minimization",
                        choices=[r.value for r in TinkerRunner.REFINEMENT])
    tinker.add_argument("--parallel", default="none", choices=[p.value for p in TinkerRunner.PARALLEL])
    return parser



# Default --max-seq-sep per command
max_seq_sep_defaults = {"tinker": 20}


def load_model(args):
    if args.max_seq_sep is None:
        args.max_seq_sep = max_seq_sep_defaults.get(args.command, 0)
    if args.pdb_code:
        model = PdbCodeModel(args.file, args.edge_type, args.cutoff, args.min_seq_sep, args.max_seq_sep)
    else:
        model = PdbFileModel(args.file, args.edge_type, args.cutoff, args.min_seq_sep, args.max_seq_sep)
    return model.load(args.chain, args.model, load_ensemble_graph=args.ensemble)


def cmd_contacts(args) -> int:
    model = load_model(args)
    df = model.graph.to_dataframe()
    if args.output is not None:
        df.to_csv(args.output, index=False)
        log(1, "{} contacts written to: {}".format(len(df), args.output))
    else:
        print(df.to_string(index=False))
    if args.plot is not None:
        save_contact_map(model.graph, args.plot)
    return 0


def cmd_pymol(args) -> int:
    model = load_model(args)
    name = model.get_pdb_code() or model.loaded_graph_id
    adaptor = PyMolAdaptor(args.url, name, model.get_chain_code(), model.temp_pdb_file, offline=args.offline)
    if args.nbh is not None:
        adaptor.show_triangles(model.get_common_nbh(*args.nbh), args.serial)
    else:
        adaptor.edge_selection(args.serial, model.get_contacts())
    if args.offline:
        path = adaptor.save_session_script()
        log(1, "PyMol script written to: {}".format(path))
        adaptor.script.execute()
    return 0


def cmd_tinker(args) -> int:
    model = load_model(args)
    action = TinkerRunAction(None, model, TinkerRunner.PARALLEL(args.parallel),
                             TinkerRunner.REFINEMENT(args.refinement), args.models)
    if action.tinker_run is None:
        return 1
    try:
        action.wait()
    except KeyboardInterrupt:
        log("warning", "Cancelling Tinker run...")
        action.cancel()
        action.wait()
    if action.tinker_run.result is None:
        return 1
    log(1, "Result: {}".format(action.tinker_run.result))
    return 0


commands = {"contacts": cmd_contacts, "pymol": cmd_pymol, "tinker": cmd_tinker}


def main(argv:list[str]|None=None) -> int:
    args = build_parser().parse_args(argv)
    if args.config is not None:
        config.load_config(args.config)
    try:
        return commands[args.command](args)
    except (ModelConstructionError, PymolCommunicationError, TinkerError, ValueError) as e:
        log("error", str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
