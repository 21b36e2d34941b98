from ..utilities.logging import log


from matplotlib.figure import Figure


ss_colours = {"H": "red", "E": "yellow"}



def contact_map_figure(graph, title:str|None=None, fig:Figure|None=None, cmap:str="Greys") -> Figure:
    """
    Draws the contact map of a graph. Weighted graphs are shaded by weight. Helices and strands are marked on the
    diagonal.
    :param graph: RIGraph.
    :param title: (optional) Title, graph codes by default.
    :param fig: Use this figure instead of new one.
    :return: Figure.
    """
    if fig is None:
        fig = Figure(figsize=(6, 6))
    ax = fig.add_subplot(111)
    serials = graph.get_serials()
    matrix = graph.to_matrix()
    if len(serials) == 0:
        log("warning", "Empty graph, nothing to plot")
        return fig
    extent = (serials[0]-0.5, serials[-1]+0.5, serials[-1]+0.5, serials[0]-0.5)
    if len(serials) == serials[-1] - serials[0] + 1:
        ax.imshow(matrix, cmap=cmap, vmin=0, vmax=1, extent=extent, interpolation="nearest")
    else:
        xs, ys, ws = [], [], []
        for c in graph.get_contacts():
            xs.extend([c.i, c.j])
            ys.extend([c.j, c.i])
            ws.extend([c.weight, c.weight])
        ax.scatter(xs, ys, c=ws, cmap=cmap, vmin=0, vmax=1, marker="s", s=4)
        ax.set_xlim(extent[0], extent[1])
        ax.set_ylim(extent[2], extent[3])
    for serial in serials:
        ss = graph.nodes[serial].get("ss")
        if ss in ss_colours:
            ax.plot(serial, serial, marker="s", markersize=2, color=ss_colours[ss])
    if title is None:
        title = "{}{} {} {}A".format(graph.pdb_code, graph.chain_code, graph.edge_type, graph.dist_cutoff)
    ax.set_title(title)
    ax.set_xlabel("Residue")
    ax.set_ylabel("Residue")
    return fig


def save_contact_map(graph, path:str, dpi:int=150, **kwargs) -> str:
    fig = contact_map_figure(graph, **kwargs)
    fig.savefig(path, dpi=dpi)
    log(1, "Contact map saved to: {}".format(path))
    return path


def show_contact_map(graph, **kwargs):
    import matplotlib.pyplot as plt
    fig = plt.figure(figsize=(6, 6))
    contact_map_figure(graph, fig=fig, **kwargs)
    plt.show()

