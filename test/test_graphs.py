import pytest

from cmview.structure import loadPDB
from cmview.graphs import Contact, ContactList, EdgeNbh, RIGraph, RIGEnsemble


CA_CONTACTS = [(1, 2), (1, 3), (2, 3), (2, 4), (3, 4), (3, 5), (4, 5), (4, 6), (5, 6)]


@pytest.fixture
def graph(pdb_file):
    chain = loadPDB(pdb_file).get_model(1).get_chain("A")
    return RIGraph.from_chain(chain, "Ca", 8.0, pdb_code="1abc", secondary_structure={2: "H"})


def test_contact():
    c = Contact(5, 2, 0.5)
    assert (c.i, c.j) == (2, 5)
    assert c.range == 3
    assert c == Contact(2, 5)
    assert len({Contact(2, 5), Contact(5, 2)}) == 1
    assert sorted([Contact(3, 4), Contact(1, 9)]) == [Contact(1, 9), Contact(3, 4)]
    with pytest.raises(ValueError):
        Contact(3, 3)


def test_contact_list_residues():
    contacts = ContactList([Contact(3, 5), Contact(1, 3), Contact(5, 6)])
    assert contacts.residues() == [3, 5, 1, 6]


def test_from_chain(graph):
    assert [(c.i, c.j) for c in graph.get_contacts()] == CA_CONTACTS
    assert graph.get_serials() == [1, 2, 3, 4, 5, 6]
    assert graph.get_sequence() == "AGAAGA"
    assert graph.chain_code == "A"
    assert graph.pdb_code == "1abc"
    assert graph.nodes[2] == {"resn": "GLY", "ss": "H"}
    assert graph.nodes[1]["ss"] is None
    assert graph.has_contact(4, 2)
    assert not graph.has_contact(1, 4)
    assert graph.get_weight(1, 2) == 1.0
    assert graph.get_weight(1, 6) == 0.0


def test_edge_types(pdb_file):
    chain = loadPDB(pdb_file).get_model(1).get_chain("A")
    for edge_type in ("Cb", "ALL", "SC"):
        g = RIGraph.from_chain(chain, edge_type, 8.0)
        assert [(c.i, c.j) for c in g.get_contacts()] == CA_CONTACTS

    short = RIGraph.from_chain(chain, "Ca", 4.0)
    assert [(c.i, c.j) for c in short.get_contacts()] == [(1, 2), (2, 3), (3, 4), (4, 5), (5, 6)]

    empty = RIGraph.from_chain(chain, "O", 8.0)
    assert len(empty) == 0
    assert len(empty.nodes) == 6


def test_common_nbh(graph):
    nbh = graph.get_common_nbh(2, 4)
    assert isinstance(nbh, EdgeNbh)
    assert (nbh.i_resser, nbh.j_resser) == (2, 4)
    assert nbh == {3: "ALA"}
    assert list(graph.get_common_nbh(2, 3).keys()) == [1, 4]
    assert graph.get_neighbours(1) == {2, 3}


def test_restrict_to_seq_sep(graph):
    g = graph.copy()
    assert g.restrict_to_seq_sep(2, 0) == 5
    assert [(c.i, c.j) for c in g.get_contacts()] == [(1, 3), (2, 4), (3, 5), (4, 6)]
    assert len(graph) == 9

    g = graph.copy()
    assert g.restrict_to_seq_sep(0, 1) == 4
    assert all([c.range == 1 for c in g.get_contacts()])

    g = graph.copy()
    assert g.restrict_to_seq_sep(-1, -1) == 0


def test_edit_edges(graph):
    g = graph.copy()
    g.remove_edge(2, 1)
    assert not g.has_contact(1, 2)
    g.add_edge(6, 1, 0.25)
    assert g.get_weight(1, 6) == 0.25
    assert g.get_contacts()[0].weight == 1.0


def test_to_matrix(graph):
    matrix = graph.to_matrix()
    assert matrix.shape == (6, 6)
    assert (matrix == matrix.T).all()
    assert matrix[0, 1] == 1.0
    assert matrix[0, 3] == 0.0
    assert matrix.sum() == 18


def test_to_dataframe(graph):
    df = graph.to_dataframe()
    assert list(df.columns) == ["i", "j", "i_res", "j_res", "range", "weight"]
    assert len(df) == 9
    assert df.iloc[0].to_dict() == {"i": 1, "j": 2, "i_res": "ALA", "j_res": "GLY", "range": 1, "weight": 1.0}



def test_ensemble(multi_model_file):
    ensemble = RIGEnsemble("Ca", 8.0)
    assert ensemble.load_from_multi_model_file(multi_model_file, "A") == 2
    avg = ensemble.get_average_graph()
    assert avg.get_weight(4, 6) == 0.5
    assert avg.get_weight(5, 6) == 0.5
    assert avg.get_weight(1, 2) == 1.0
    assert len(avg) == 9
    assert avg.chain_code == "A"


def test_ensemble_errors(tmp_path, multi_model_file):
    ensemble = RIGEnsemble()
    with pytest.raises(IOError):
        ensemble.load_from_multi_model_file(str(tmp_path / "missing.pdb"), "A")
    with pytest.raises(IOError):
        ensemble.load_from_multi_model_file(multi_model_file, "Z")
    assert len(RIGEnsemble().get_average_graph()) == 0
