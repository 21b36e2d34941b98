


class Contact(object):
    """
    Undirected contact between two residues, identified by their serials. Stored with i < j.
    """
    def __init__(self, i:int, j:int, weight:float=1.0):
        if i == j:
            raise ValueError("A residue can not be in contact with itself: {}".format(i))
        self.i, self.j = min(i, j), max(i, j)
        self.weight = weight

    def __repr__(self):
        return "<cm.Contact {}-{} w={:.2f}>".format(self.i, self.j, self.weight)

    def __eq__(self, other):
        return isinstance(other, Contact) and (self.i, self.j) == (other.i, other.j)

    def __hash__(self):
        return hash((self.i, self.j))

    def __lt__(self, other):
        return (self.i, self.j) < (other.i, other.j)

    @property
    def range(self) -> int:
        return self.j - self.i



class ContactList(list):

    def __repr__(self):
        return "<cm.ContactList n={}>".format(len(self))

    def residues(self) -> list[int]:
        """
        Distinct residue serials in order of first appearance.
        """
        residues = []
        seen = set()
        for c in self:
            for r in (c.i, c.j):
                if r not in seen:
                    seen.add(r)
                    residues.append(r)
        return residues



class EdgeNbh(dict):
    """
    Common neighbourhood of the edge (i_resser, j_resser): neighbour serial -> residue name.
    """
    def __init__(self, i_resser:int, j_resser:int, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.i_resser = i_resser
        self.j_resser = j_resser

    def __repr__(self):
        return "<cm.EdgeNbh {}-{} k={}>".format(self.i_resser, self.j_resser, sorted(self.keys()))
