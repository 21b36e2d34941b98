import pytest

from cmview.datasources import model as model_module


RESIDUES = ["ALA", "GLY", "ALA", "ALA", "GLY", "ALA"]
CA_SPACING = 3.8


def atom_line(serial, name, resn, chain, resseq, x, y, z, element, icode=" "):
    if len(name) < 4:
        name = " " + name
    return "ATOM  {:5d} {:<4s} {:3s} {}{:4d}{}   {:8.3f}{:8.3f}{:8.3f}{:6.2f}{:6.2f}          {:>2s}".format(
        serial, name, resn, chain, resseq, icode, x, y, z, 1.0, 0.0, element)


def chain_lines(chain="A", residues=None, skip=(), moved=None, ids=None):
    """
    Residues laid on the x axis, CA atoms 3.8 A apart. Alanines get a CB 1.5 A off the axis.
    moved: {resseq: x} to displace residues.
    ids: (resseq, icode) of each residue, 1, 2, 3... by default.
    """
    if residues is None:
        residues = RESIDUES
    if moved is None:
        moved = {}
    lines = []
    serial = 1
    for n, resn in enumerate(residues):
        resseq, icode = ids[n] if ids is not None else (n + 1, " ")
        if resseq in skip:
            continue
        x = moved.get(resseq, CA_SPACING * n)
        lines.append(atom_line(serial, "CA", resn, chain, resseq, x, 0.0, 0.0, "C", icode))
        serial += 1
        if resn != "GLY":
            lines.append(atom_line(serial, "CB", resn, chain, resseq, x, 1.5, 0.0, "C", icode))
            serial += 1
    lines.append("TER")
    return lines


def header_line(code="1ABC"):
    return "{:<50s}{:<12s}{}".format("HEADER    TEST STRUCTURE", "01-JAN-00", code)


def helix_line(chain, start, end):
    return "HELIX  {:>3d} {:>3s} ALA {} {:>4d}  ALA {} {:>4d} {:>2d}".format(1, "1", chain, start, chain, end, 1)


def write_pdb(path, lines):
    with open(path, "w") as f:
        f.write("\n".join(lines + ["END"]) + "\n")
    return str(path)



@pytest.fixture(autouse=True)
def cmview_env(tmp_path, monkeypatch):
    temp = tmp_path / "cmview_tmp"
    monkeypatch.setenv("CMVIEW_TEMP_DIR", str(temp))
    monkeypatch.setenv("CMVIEW_DSSP_EXECUTABLE", "cmview-missing-dssp")
    monkeypatch.setenv("CMVIEW_WATCHER_INTERVAL", "0.01")
    monkeypatch.setattr(model_module, "loaded_graphs", {})
    return temp


@pytest.fixture
def pdb_file(tmp_path):
    return write_pdb(tmp_path / "1abc.pdb", [header_line(), helix_line("A", 2, 4)] + chain_lines())


@pytest.fixture
def plain_pdb_file(tmp_path):
    return write_pdb(tmp_path / "plain.pdb", chain_lines())


@pytest.fixture
def casp_pdb_file(tmp_path):
    return write_pdb(tmp_path / "casp.pdb", ["PFRMAT TS", "TARGET T0123"] + chain_lines())


@pytest.fixture
def gapped_pdb_file(tmp_path):
    return write_pdb(tmp_path / "gap.pdb", [header_line("2XYZ")] + chain_lines(skip=(4,)))


@pytest.fixture
def multi_model_file(tmp_path):
    lines = [header_line()]
    lines += ["MODEL        1"] + chain_lines() + ["ENDMDL"]
    lines += ["MODEL        2"] + chain_lines(moved={6: 100.0}) + ["ENDMDL"]
    return write_pdb(tmp_path / "1abc_nmr.pdb", lines)


@pytest.fixture
def icode_pdb_file(tmp_path):
    # residue 2A inserted between 2 and 3
    ids = [(1, " "), (2, " "), (2, "A"), (3, " "), (5, " ")]
    lines = [header_line("4INS"), helix_line("A", 2, 3)] + chain_lines(residues=["ALA", "GLY", "ALA", "GLY", "ALA"],
                                                                        ids=ids)
    return write_pdb(tmp_path / "4ins.pdb", lines)
