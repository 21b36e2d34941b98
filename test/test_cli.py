import os
import pandas as pd
import pytest

from cmview import cli
from cmview.visualisation.pymol import PymolScript
from conftest import chain_lines, header_line, write_pdb, CA_SPACING


def test_contacts_csv(tmp_path, pdb_file):
    out = str(tmp_path / "contacts.csv")
    plot = str(tmp_path / "contacts.png")
    assert cli.main(["contacts", pdb_file, "-c", "A", "-o", out, "--plot", plot]) == 0
    df = pd.read_csv(out)
    assert len(df) == 9
    assert list(df.columns) == ["i", "j", "i_res", "j_res", "range", "weight"]
    assert os.path.getsize(plot) > 0


def test_contacts_print(capsys, pdb_file, monkeypatch):
    monkeypatch.setenv("CMVIEW_VERBOSE", "-2")
    assert cli.main(["contacts", pdb_file, "--min-seq-sep", "2"]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[0].split() == ["i", "j", "i_res", "j_res", "range", "weight"]
    assert len(lines) == 5


def test_contacts_ensemble(tmp_path, multi_model_file):
    out = str(tmp_path / "ensemble.csv")
    assert cli.main(["contacts", multi_model_file, "--ensemble", "-o", out]) == 0
    df = pd.read_csv(out)
    assert sorted(df[df["weight"] < 1][["i", "j"]].values.tolist()) == [[4, 6], [5, 6]]


def test_errors(tmp_path, pdb_file):
    assert cli.main(["contacts", str(tmp_path / "missing.pdb")]) == 1
    assert cli.main(["contacts", pdb_file, "-c", "Z"]) == 1
    assert cli.main(["contacts", pdb_file, "-t", "XX"]) == 1
    with pytest.raises(SystemExit):
        cli.main(["unknown"])


def test_pymol_offline(pdb_file, cmview_env, monkeypatch):
    executed = []
    monkeypatch.setattr(PymolScript, "execute", lambda self, wait=False: executed.append(self.path))
    assert cli.main(["pymol", pdb_file, "--offline", "--nbh", "2", "3", "--serial", "4"]) == 0
    path = os.path.join(str(cmview_env), "1abcA.pml")
    assert executed == [path]
    with open(path) as f:
        lines = f.read().splitlines()
    assert lines[-1] == "cmd.select('1abcANbh4Nodes', '1abcA and chain A and resi 2+3+1+4')"


def test_tinker_missing_programs(tmp_path, pdb_file, monkeypatch):
    bin_dir = tmp_path / "tinker_bin"
    bin_dir.mkdir()
    monkeypatch.setenv("CMVIEW_TINKER_BIN_DIR", str(bin_dir))
    assert cli.main(["tinker", pdb_file]) == 1


def test_parser_defaults(pdb_file):
    args = cli.build_parser().parse_args(["tinker", pdb_file])
    assert (args.chain, args.model, args.edge_type, args.cutoff) == ("A", 1, "Ca", 8.0)
    assert (args.min_seq_sep, args.max_seq_sep) == (0, None)
    assert (args.models, args.refinement, args.parallel) == (1, "minimization", "none")
    assert cli.build_parser().parse_args(["tinker", pdb_file, "--max-seq-sep", "5"]).max_seq_sep == 5
    assert cli.build_parser().parse_args(["contacts", pdb_file]).max_seq_sep is None


@pytest.fixture
def long_range_pdb_file(tmp_path):
    # residue 25 folds back next to residue 1
    lines = chain_lines(residues=["ALA"] * 25, moved={25: -CA_SPACING})
    return write_pdb(tmp_path / "fold.pdb", [header_line("3FLD")] + lines)


@pytest.mark.parametrize("command", ["contacts", "pymol"])
def test_max_seq_sep_unlimited(long_range_pdb_file, command):
    args = cli.build_parser().parse_args([command, long_range_pdb_file])
    model = cli.load_model(args)
    assert args.max_seq_sep == 0
    assert model.graph.has_contact(1, 25)


def test_max_seq_sep_tinker(long_range_pdb_file):
    args = cli.build_parser().parse_args(["tinker", long_range_pdb_file])
    model = cli.load_model(args)
    assert args.max_seq_sep == 20
    assert not model.graph.has_contact(1, 25)
    assert model.graph.has_contact(1, 2)

    args = cli.build_parser().parse_args(["tinker", long_range_pdb_file, "--max-seq-sep", "0"])
    assert cli.load_model(args).graph.has_contact(1, 25)


def test_config_option(tmp_path, pdb_file, monkeypatch):
    monkeypatch.setattr(cli.config, "_file_values", {})
    cfg = tmp_path / "custom.cfg"
    cfg.write_text("PYMOL_EXECUTABLE = /opt/pymol/bin/pymol\n")
    out = str(tmp_path / "contacts.csv")
    assert cli.main(["--config", str(cfg), "contacts", pdb_file, "-o", out]) == 0
    assert cli.config.get("PYMOL_EXECUTABLE") == "/opt/pymol/bin/pymol"
