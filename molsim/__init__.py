"""Molecular simulation building blocks: numerical helpers, periodic cells,
geometry with gradients, linear algebra, histograms, Ewald k-space sums and
bonded intramolecular potentials."""

__version__ = "0.1.0"