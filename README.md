# molsim

Building blocks for classical molecular simulation, written on top of NumPy.

## Modules

- `molsim.fns` – small numerical helpers: tolerant float comparisons
  (`is_almost_zero`, `are_approximately_equal`, `relative_error`),
  `factorial`, `double_factorial`, `combinations`, `periodic` wrapping,
  `three_point_slope`, the complex error function `erfz(x, y)` (returns a
  `complex`), 256-point Gauss–Legendre `integrate(f, a, b)` and
  `find_maximum(f, a, b)`, which returns `(xmax, fmax)`.
- `molsim.pbc` – mapping a point into the central box, the shift that does
  so, and the nearest lattice point, for cubic, orthorhombic, triclinic,
  body-centred cubic and face-centred cubic periodic cells.
- `molsim.geometry` – `angle`, `dihedral` and `normal_distance` (point to
  plane), their analytic gradients (`angle_gradient`, `dihedral_gradient`,
  `normal_distance_gradient`, each returning the value followed by one
  gradient vector per point) and `z_location` for placing an atom from a
  distance, an angle and a dihedral. Angles are in radians.
- `molsim.linalg` – `linear_solve`, `least_squares`,
  `constrained_least_squares`, `svd_least_squares`,
  `singular_value_decomposition`, `invert_svd` (pseudo-inverse),
  `invert_symmetric_tensor`, `diagonalize_symmetric`,
  `diagonalize_general`, `determinant`, `log_determinant` and
  `orthonormalize`. Inputs are not modified; results are returned.
- `molsim.histogram` – `Histogram` with `nbin` bins over `[lo, hi)`. A
  dynamic histogram (the default) takes its range from the data and widens
  it as needed; a fixed one ignores values outside its range. It provides
  `mean()`, `variance()`, `write(stream)` for a normalised density table and
  `write_file(path, comment)`.
- `molsim.kspace` – `KSpace(cutoff, nsite)`, the reciprocal-space part of an
  Ewald sum. `phi(r, q, latv, volume, eta)` returns the potential at every
  site; `field(...)` returns the potential and the electric field.
- `molsim.intra_terms` – `Atom`, the parameter records `StretchParam`,
  `BendParam` and `TorsionParam`, and the terms `Stretch`, `Bend`,
  `Torsion` and `DihedralRestraint`, each able to add its forces to an
  `(N, 3)` array and return its energy, and (apart from the restraint) to
  interpolate between two parameter sets with `set_lambda`.
- `molsim.intra` – `IntramolecularPotential`, which builds stretches, bends,
  torsions and impropers from the atoms' `neighbors` and looks up their
  parameters in type-keyed tables (after mapping types through
  `general_type`). `types_changed(perturbed)` assigns a second parameter set
  from a perturbed copy of the atoms, and `set_lambda` moves between them.
- `molsim.geostats` – `BondStatistics`, `AngleStatistics`,
  `DihedralStatistics` and `GeometryStatistics`, which select bonds, angles
  or dihedrals by atom type and collect histograms of them over many
  configurations.

Energies are in kcal/mol and lengths in ångström. The equilibrium angle of a
bend and both the force constant (per degree squared) and target angle of a
dihedral restraint are given in degrees.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Command-line tools

### molsim-geo

Geometry of points given on the command line. Angles are printed in degrees.

```
molsim-geo distance  x1 y1 z1  x2 y2 z2
molsim-geo angle     x1 y1 z1  x2 y2 z2  x3 y3 z3
molsim-geo dihedral  x1 y1 z1  x2 y2 z2  x3 y3 z3  x4 y4 z4
molsim-geo zlocation ax ay az  bx by bz  cx cy cz  r theta phi
```

`zlocation` prints the point that lies a distance `r` from `a`, makes the
angle `theta` with `a`–`b` and the dihedral `phi` with `a`–`b`–`c`
(both in degrees). With missing or unknown arguments the usage text is
printed and the exit status is 1.

For example

```
molsim-geo angle 1 0 0  0 0 0  0 1 0
```

prints ` 90.00000000`.

### molsim-hist

Reads whitespace-separated numbers from standard input and writes a
normalised histogram to standard output.

```
molsim-hist [-n NBIN] [-l LO] [-h HI] < data.txt
```

- `-n` number of bins (default 50)
- `-l` lower edge (default: smallest value, less 1e-8)
- `-h` upper edge (default: largest value, plus 1e-8)

Values outside `[LO, HI)` are left out. The output starts with a comment
line giving the fitted Gaussian `# gauss(x,mean,sd)` and one with the sample
count, followed by one line per bin: the bin centre and the probability
density there. If `HI` is below `LO` the command reports it and exits with
status 1.

## Using the library

```python
import numpy as np
from molsim.geometry import angle
from molsim.histogram import Histogram
from molsim.intra import IntramolecularPotential
from molsim.intra_terms import Atom, BendParam, StretchParam

print(angle([1, 0, 0], [0, 0, 0], [0, 1, 0]))   # radians

h = Histogram(nbin=20, lo=0.0, hi=1.0, is_dynamic=False)
h.init()
for x in np.random.default_rng(1).random(1000):
    h.update(x)
print(h.mean(), h.variance())

atoms = [
    Atom("O", "OW", [0.0, 0.0, 0.0], [1, 2]),
    Atom("H", "HW", [0.9572, 0.0, 0.0], [0]),
    Atom("H", "HW", [-0.24, 0.927, 0.0], [0]),
]
pot = IntramolecularPotential(
    stretch={("OW", "HW"): StretchParam(k=450.0, r0=0.9572)},
    bend={("HW", "OW", "HW"): BendParam(k=55.0, theta0=104.52)},
    verbose=0,
)
pot.init(atoms)
forces = np.zeros((3, 3))
energy = pot.add_to_energy_and_forces(forces)
```

## What the package does not do

molsim supplies pieces, not a simulation program. It has no molecular
dynamics or energy-minimisation driver, no input-file reader for whole
systems, no nonbonded (electrostatic or Lennard-Jones) potential beyond the
reciprocal-space sum in `KSpace`, and no trajectory storage. The
`IntramolecularPotential` and the statistics classes work on a plain list of
`Atom` objects that the caller builds and updates.