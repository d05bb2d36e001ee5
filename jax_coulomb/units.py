import jax.numpy as jnp
from typing import Dict
from jax_coulomb import util

"""Defines the unit tags carried by interactions and an MD units system.

   Energies and forces are plain arrays; the interaction records which units
   they are expressed in through string tags. The default system matches the
   GROMACS convention (nm, kJ/mol, ps, elementary charge). A force tag fixes
   both the energy and the length unit, and the default Coulomb constant of an
   interaction is expressed in them.
"""

# Types
f64 = util.f64

# CODATA Recommended Values of the Fundamental Physical Constants: 2014
# http://arxiv.org/pdf/1507.07956.pdf
# https://wiki.fysik.dtu.dk/ase/_modules/ase/units.html#create_units

constants_CONDATA_2014 = {'_c': 299792458.,  # speed of light, m/s
                          '_mu0': 4.0e-7 * jnp.pi,  # permeability of vacuum
                          '_e': 1.6021766208e-19,  # elementary charge
                          '_Nav': 6.022140857e23}  # Avogadro number


NO_UNITS = 'NoUnits'

# Tag -> value of that unit expressed in kJ/mol.
ENERGY_UNITS = {
    'kJ * mol^-1': 1.0,
    'kcal * mol^-1': 4.184,
    NO_UNITS: 1.0,
}

# Tag -> (energy tag, length unit expressed in nm).
FORCE_UNIT_PARTS = {
    'kJ * mol^-1 * nm^-1': ('kJ * mol^-1', 1.0),
    'kJ * mol^-1 * Å^-1': ('kJ * mol^-1', 0.1),
    'kcal * mol^-1 * nm^-1': ('kcal * mol^-1', 1.0),
    'kcal * mol^-1 * Å^-1': ('kcal * mol^-1', 0.1),
    NO_UNITS: (NO_UNITS, 1.0),
}

# Tag -> value of that unit expressed in kJ/mol/nm.
FORCE_UNITS = {tag: ENERGY_UNITS[energy] / length
               for tag, (energy, length) in FORCE_UNIT_PARTS.items()}

DEFAULT_ENERGY_UNITS = 'kJ * mol^-1'
DEFAULT_FORCE_UNITS = 'kJ * mol^-1 * nm^-1'


def check_units(force_units: str, energy_units: str):
  """Raises a ValueError unless the two tags are known and consistent.

  Consistent means the force tag is the energy tag per length unit, so that a
  single Coulomb constant serves both outputs.
  """
  if force_units not in FORCE_UNITS:
    raise ValueError(f'Unknown force units {force_units!r}. Expected one of '
                     f'{sorted(FORCE_UNITS)}.')
  if energy_units not in ENERGY_UNITS:
    raise ValueError(f'Unknown energy units {energy_units!r}. Expected one of '
                     f'{sorted(ENERGY_UNITS)}.')
  if FORCE_UNIT_PARTS[force_units][0] != energy_units:
    raise ValueError(f'Force units {force_units!r} are not expressed in the '
                     f'energy units {energy_units!r}.')


def md_unit_system(constants: Dict = constants_CONDATA_2014):
    """MD unit system (nm, kJ/mol, e).

  Args:
    constants: Dictionary of fundamental constants

  Returns:
    Dictionary of conversion factors
  """

    nanometer = 1  # Default length scale
    kJ_per_mol = 1  # Default Energy scale
    charge = 1  # Default charge

    md_units = {'distance': f64(nanometer),
                'energy': f64(kJ_per_mol),
                'force': f64(kJ_per_mol / nanometer),
                'charge': f64(charge),
                'coulomb constant': f64(coulomb_constant(constants))}

    return md_units


def coulomb_constant(constants: Dict = constants_CONDATA_2014) -> float:
  """Returns 1 / (4 pi eps0) in kJ mol^-1 nm e^-2.

  Uses eps0 = 1 / (mu0 c^2), which is exact for the 2014 SI definitions.
  """
  c = constants['_c']
  mu0 = constants['_mu0']
  e = constants['_e']
  Nav = constants['_Nav']
  # J m -> kJ nm
  return float(mu0 * c ** 2 / (4 * jnp.pi) * e ** 2 * Nav * 1e-3 * 1e9)


def coulomb_constant_in(coulomb_const, force_units: str):
  """Re-expresses a constant given in kJ mol^-1 nm e^-2 in `force_units`.

  The result is in (energy unit) (length unit) e^-2 of the force tag.
  """
  if force_units not in FORCE_UNIT_PARTS:
    raise ValueError(f'Unknown force units {force_units!r}.')
  energy, length = FORCE_UNIT_PARTS[force_units]
  return coulomb_const / (ENERGY_UNITS[energy] * length)


def convert_energy(value, from_units: str, to_units: str):
  """Re-expresses an energy given in `from_units` in `to_units`."""
  for u in (from_units, to_units):
    if u not in ENERGY_UNITS:
      raise ValueError(f'Unknown energy units {u!r}.')
  return value * (ENERGY_UNITS[from_units] / ENERGY_UNITS[to_units])


def convert_force(value, from_units: str, to_units: str):
  """Re-expresses a force given in `from_units` in `to_units`."""
  for u in (from_units, to_units):
    if u not in FORCE_UNITS:
      raise ValueError(f'Unknown force units {u!r}.')
  return value * (FORCE_UNITS[from_units] / FORCE_UNITS[to_units])
