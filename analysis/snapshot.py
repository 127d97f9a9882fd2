"""
Static snapshot rendering for molecules.
Provides GUI-independent 3D views of atoms, bonds and lone pairs.
"""

import matplotlib
matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np

from molshape.molecule import Molecule

# Set rendering defaults
plt.rcParams['figure.facecolor'] = 'white'
plt.rcParams['axes.facecolor'] = 'white'
plt.rcParams['savefig.bbox'] = 'tight'

# CPK-style colours; anything else is drawn grey
ATOM_COLORS = {
    'H': '#FFFFFF', 'C': '#404040', 'N': '#3050F8', 'O': '#FF0D0D', 'F': '#90E050',
    'Cl': '#1FF01F', 'Br': '#A62929', 'S': '#FFFF30', 'P': '#FF8000', 'B': '#FFB5B5',
    'Be': '#C2FF00', 'Xe': '#429EB0', 'X': '#A0A0A0',
}
LONE_PAIR_COLOR = '#E0A0FF'


def render_molecule(molecule: Molecule, filename: str, format: str = 'png',
                    show_lone_pairs: bool = True, title: str = None) -> str:
    """
    Render a static 3D snapshot of a molecule.

    Parameters:
    -----------
    molecule : Molecule
        Molecule to draw; atom positions are read as they are now
    filename : str
        Output filename (extension will be added if not present)
    format : str
        Output format ('png' or 'svg', default: 'png')
    show_lone_pairs : bool
        Draw lone pairs as small translucent markers

    Returns:
    --------
    str : the path written
    """
    if format not in ('png', 'svg'):
        raise ValueError(f"Unsupported format: {format}")
    if not molecule.atoms:
        raise ValueError("Cannot render an empty molecule")

    fig = plt.figure(figsize=(8, 8))
    ax = fig.add_subplot(projection='3d')

    points = [a.position for a in molecule.atoms]

    # Bonds first (behind atoms); line width grows with bond order
    for bond in molecule.bonds:
        ends = np.vstack([bond.a.position, bond.b.position])
        ax.plot(ends[:, 0], ends[:, 1], ends[:, 2], color='#808080', linewidth=1.5 * bond.order, zorder=1)

    for atom in molecule.atoms:
        x, y, z = atom.position
        size = 600 if atom is molecule.central_atom else 300
        ax.scatter([x], [y], [z], s=size, c=ATOM_COLORS.get(atom.symbol, '#A0A0A0'),
                   edgecolors='black', linewidths=0.5, alpha=0.95, zorder=2)

    if show_lone_pairs:
        for atom in molecule.atoms:
            for position in molecule.lone_pair_positions(atom):
                points.append(position)
                ax.scatter([position[0]], [position[1]], [position[2]], s=150, c=LONE_PAIR_COLOR,
                           edgecolors='none', alpha=0.6, zorder=3)

    # Equal extent on all axes so angles are not distorted
    coords = np.vstack(points)
    center = coords.mean(axis=0)
    radius = max(float(np.max(np.abs(coords - center))), 1.0) * 1.1
    ax.set_xlim(center[0] - radius, center[0] + radius)
    ax.set_ylim(center[1] - radius, center[1] + radius)
    ax.set_zlim(center[2] - radius, center[2] + radius)
    ax.set_box_aspect((1, 1, 1))
    ax.set_axis_off()
    if title:
        ax.set_title(title)

    if not filename.lower().endswith(f'.{format}'):
        filename = f'{filename}.{format}'

    if format == 'png':
        plt.savefig(filename, format='png', dpi=150, bbox_inches='tight')
    else:
        plt.savefig(filename, format='svg', bbox_inches='tight')

    plt.close(fig)
    return filename
