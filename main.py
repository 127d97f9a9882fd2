import sys
import logging
import argparse

from molshape import constants as C
from molshape.elements_data import load_elements
from molshape.errors import MoleculeError
from molshape.geometry import ideal_bond_angle
from molshape.model import MoleculeShapesModel, ModelMoleculesModel, RealMoleculesModel
from molshape.real_shapes import get_real_shape

logger = logging.getLogger(__name__)


def build_model(args) -> MoleculeShapesModel:
    """Model screen with the requested groups, or the real-molecule screen."""
    if args.real:
        model = RealMoleculesModel(seed=args.seed)
        model.real_molecule_shape.value = get_real_shape(args.real)
        return model

    model = ModelMoleculesModel(seed=args.seed)
    molecule = model.vsepr_molecule
    molecule.remove_all_groups()
    for _ in range(args.bonds):
        if molecule.add_bonded_group(args.order) is None:
            raise ValueError(f"At most {C.MAX_PAIRS} pair groups fit around the center")
    for _ in range(args.lone_pairs):
        if molecule.add_lone_pair() is None:
            raise ValueError(f"At most {C.MAX_PAIRS} pair groups fit around the center")
    return model


def run_simulation_cli(argv=None) -> int:
    """
    Relax a molecule headlessly and report its shape:
    --bonds, --lone-pairs, --order, --real, --steps, --dt, --seed, --plot, --snapshot, --elements
    """
    parser = argparse.ArgumentParser(description="Relax a VSEPR molecule and print its geometry.")
    parser.add_argument("--bonds", type=int, default=2, help="Bonded atoms around the center")
    parser.add_argument("--lone-pairs", type=int, default=0, help="Lone pairs on the center")
    parser.add_argument("--order", type=float, default=1, help="Bond order of the added bonds")
    parser.add_argument("--real", type=str, default=None, help="Real molecule instead, e.g. H2O")
    parser.add_argument("--steps", type=int, default=300, help="Number of frames")
    parser.add_argument("--dt", type=float, default=0.05, help="Frame time (capped at MAX_DT)")
    parser.add_argument("--seed", type=int, default=0, help="Jitter seed")
    parser.add_argument("--elements", type=str, default=None, help="Custom elements JSON file")
    parser.add_argument("--plot", type=str, default=None, help="Filename prefix for convergence plots")
    parser.add_argument("--snapshot", type=str, default=None, help="Write a 3D snapshot PNG")
    parser.add_argument("--log-level", type=str, default=C.LOGGING_LEVEL, help="Logging level")
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO),
                        format="%(asctime)s [%(levelname)s] %(message)s")

    if args.elements:
        load_elements(args.elements)

    try:
        model = build_model(args)
    except (MoleculeError, ValueError) as e:
        logger.error(f"Cannot build molecule: {e}")
        return 1

    for _ in range(args.steps):
        model.step(args.dt)

    molecule = model.molecule.value
    summary = model.metrics.summary()
    config = molecule.get_central_configuration()
    print(f"Electron geometry: {config.electron_geometry.display_name}")
    print(f"Molecular geometry: {config.name}")
    angles = ", ".join(f"{a:.2f}" for a in molecule.bond_angles())
    print(f"Bond angles (deg): {angles or '-'}")
    if len(molecule.radial_atoms) >= 2:
        print(f"Ideal smallest bond angle (deg): {ideal_bond_angle(config.x, config.e):.2f}")
    print(f"Net force: {summary['net_force']:.3e}  energy: {summary['energy']:.6f}")

    if args.plot:
        try:
            from analysis.plots import plot_bond_angles, plot_convergence, plot_energy
            data = model.metrics.get_plot_data()
            plot_energy(data['time'], data['energy'], f"{args.plot}_energy")
            plot_convergence(data['time'], data['force'], f"{args.plot}_force")
            if data['angles'].size:
                plot_bond_angles(data['time'], data['angles'], f"{args.plot}_angles")
            logger.info(f"Plots written with prefix {args.plot}")
        except Exception:
            logger.exception("Plot export failed")

    if args.snapshot:
        try:
            from analysis.snapshot import render_molecule
            path = render_molecule(molecule, args.snapshot, show_lone_pairs=model.show_lone_pairs.value)
            logger.info(f"Snapshot written to {path}")
        except Exception:
            logger.exception("Snapshot export failed")

    return 0


if __name__ == "__main__":
    sys.exit(run_simulation_cli())
