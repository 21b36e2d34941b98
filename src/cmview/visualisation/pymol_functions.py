"""
Functions run inside PyMol (with "run pymol_functions.py") by the cmview PyMol adaptor.
Not importable outside of a PyMol session.
"""
from pymol import cmd
from pymol.cgo import BEGIN, END, TRIANGLES, VERTEX, NORMAL, COLOR, ALPHA



def _ca_coords(obj, resi):
    model = cmd.get_model("{} and resi {} and name ca".format(obj, resi))
    if len(model.atom) == 0:
        raise ValueError("No CA atom for residue {} in {}".format(resi, obj))
    return model.atom[0].coord


def _normal(a, b, c):
    u = [b[n] - a[n] for n in range(3)]
    v = [c[n] - a[n] for n in range(3)]
    n = [u[1]*v[2] - u[2]*v[1], u[2]*v[0] - u[0]*v[2], u[0]*v[1] - u[1]*v[0]]
    length = sum([x*x for x in n]) ** 0.5 or 1.0
    return [x/length for x in n]


def triangle(name, i, j, k, colour="blue", transparency=0.7, obj=None):
    """
    Draws a CGO triangle between the CA atoms of residues i, j and k.
    :param name: Name of the CGO object.
    :param colour: PyMol colour name.
    :param transparency: 0 (opaque) to 1 (invisible).
    :param obj: Object containing the residues, derived from the name (text before "Nbh") by default.
    """
    if obj is None:
        obj = name.split("Nbh")[0]
    a, b, c = _ca_coords(obj, i), _ca_coords(obj, j), _ca_coords(obj, k)
    rgb = cmd.get_color_tuple(cmd.get_color_index(colour))
    n = _normal(a, b, c)
    tri = [ALPHA, 1.0 - float(transparency), BEGIN, TRIANGLES, COLOR] + list(rgb)
    for p in (a, b, c):
        tri.extend([NORMAL] + n + [VERTEX] + list(p))
    tri.append(END)
    cmd.load_cgo(tri, name)


cmd.extend("triangle", triangle)
