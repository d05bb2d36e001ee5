# Copyright 2019 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Pairwise Coulomb interactions: plain, soft-core and reaction field.

Each interaction is an immutable parameter set exposing

  force(dr, coord_i, coord_j, particle_i, particle_j, boundary, special)
  potential_energy(dr, coord_i, coord_j, particle_i, particle_j, boundary,
                   special)

for a single pair, where `dr` is the minimum-image displacement from particle
i to particle j. `force` returns the force acting on particle j (the force on
i is its negative). `boundary` is accepted so that every pairwise interaction
shares one calling convention; these interactions ignore it.

`special` marks 1-4 (or otherwise scaled) pairs. It may be a python bool or a
traced boolean, so a driver can `vmap` over a per-pair mask. Special pairs are
multiplied by `weight_special`; the reaction field is also switched off for
them.

Parameter sets form a commutative monoid under `combine` with identity
`identity_element`, which is what lets downstream code accumulate or average
interactions.
"""

from functools import partial, singledispatch

from typing import Any, Optional

from absl import logging

import jax.numpy as jnp

from jax_coulomb import cutoff as cutoff_lib
from jax_coulomb import dataclasses
from jax_coulomb import space
from jax_coulomb import units
from jax_coulomb import util

# Types


Array = util.Array
Boundary = Any
CutoffPolicy = Any


# 1 / (4 pi eps0) in kJ mol^-1 nm e^-2.
COULOMB_CONST = 138.93545764
SOLVENT_DIELECTRIC = 78.3


@dataclasses.dataclass
class Particle:
  """Per-particle properties read by the Coulomb interactions.

  Attributes:
    charge: Signed partial charge.
    sigma: Size parameter, used only by the soft-core interaction.
  """
  charge: Array
  sigma: Array = 0.0


def _special_weight(special, weight):
  return util.where_special(special, weight)


def _unless_special(special, x):
  """`x` for normal pairs and a zero of the same type for special pairs."""
  if isinstance(special, bool):
    return x * 0 if special else x
  return jnp.where(special, jnp.zeros_like(x), x)


# Plain Coulomb.


def coulomb_force_divr(r2: Array, coulomb_const: Array, qi: Array, qj: Array
                       ) -> Array:
  """Magnitude of the Coulomb force divided by the separation."""
  return (coulomb_const * qi * qj) / jnp.sqrt(r2 ** 3)


def coulomb_potential(r2: Array, coulomb_const: Array, qi: Array, qj: Array
                      ) -> Array:
  """.. _coulomb-pot:

  Coulomb energy between two point charges, `C qi qj / r`.
  """
  invr2 = 1 / r2
  return (coulomb_const * qi * qj) * jnp.sqrt(invr2)


@dataclasses.dataclass
class Coulomb:
  """The Coulomb electrostatic interaction between two particles.

  Build instances with `coulomb(...)`.
  """
  cutoff: CutoffPolicy = dataclasses.static_field()
  use_neighbors: bool = dataclasses.static_field()
  weight_special: Array
  coulomb_const: Array
  force_units: str = dataclasses.static_field()
  energy_units: str = dataclasses.static_field()

  def force(self, dr: Array, coord_i: Array, coord_j: Array,
            particle_i: Particle, particle_j: Particle,
            boundary: Boundary=None, special=False) -> Array:
    r2 = space.square_distance(dr)
    fn = partial(coulomb_force_divr,
                 coulomb_const=self.coulomb_const,
                 qi=particle_i.charge,
                 qj=particle_j.charge)
    f = cutoff_lib.force_divr_with_cutoff(fn, r2, self.cutoff)
    return f * dr * _special_weight(special, self.weight_special)

  def potential_energy(self, dr: Array, coord_i: Array, coord_j: Array,
                       particle_i: Particle, particle_j: Particle,
                       boundary: Boundary=None, special=False) -> Array:
    r2 = space.square_distance(dr)
    fn = partial(coulomb_potential,
                 coulomb_const=self.coulomb_const,
                 qi=particle_i.charge,
                 qj=particle_j.charge)
    pe = cutoff_lib.potential_with_cutoff(fn, r2, self.cutoff)
    return pe * _special_weight(special, self.weight_special)


def coulomb(cutoff: Optional[CutoffPolicy]=None,
            use_neighbors: bool=False,
            weight_special: Array=1.0,
            coulomb_const: Optional[Array]=None,
            force_units: str=units.DEFAULT_FORCE_UNITS,
            energy_units: str=units.DEFAULT_ENERGY_UNITS) -> Coulomb:
  """Convenience constructor for :ref:`Coulomb <coulomb-pot>` interactions.

  Args:
    cutoff: Cutoff policy. Defaults to `NoCutoff()`.
    use_neighbors: Whether the driver should restrict evaluation to a
      neighbor list.
    weight_special: Factor applied to special (e.g. 1-4) pairs.
    coulomb_const: 1 / (4 pi eps0) in the units of `force_units`. Defaults
      to `COULOMB_CONST` re-expressed in those units.
    force_units: Unit tag of returned forces.
    energy_units: Unit tag of returned energies.
  Returns:
    A `Coulomb` parameter set.
  """
  units.check_units(force_units, energy_units)
  if coulomb_const is None:
    coulomb_const = units.coulomb_constant_in(COULOMB_CONST, force_units)
  if cutoff is None:
    cutoff = cutoff_lib.NoCutoff()
  return Coulomb(cutoff=cutoff,
                 use_neighbors=use_neighbors,
                 weight_special=weight_special,
                 coulomb_const=coulomb_const,
                 force_units=force_units,
                 energy_units=energy_units)


# Soft-core Coulomb.


def lorentz_sigma(sigma_i: Array, sigma_j: Array) -> Array:
  return (sigma_i + sigma_j) / 2


def geometric_sigma(sigma_i: Array, sigma_j: Array) -> Array:
  return jnp.sqrt(sigma_i * sigma_j)


def soft_core_force_divr(r2: Array,
                         coulomb_const: Array,
                         qi: Array,
                         qj: Array,
                         sigma: Array,
                         sigma6_factor: Array) -> Array:
  """Soft-core Coulomb force divided by the separation.

  With `rsc6 = r^6 + sigma6_factor sigma^6` the energy is
  `C qi qj rsc6^(-1/6)`, whose negative radial derivative is
  `C qi qj r^5 rsc6^(-7/6)`. The exponent is assembled from the powers
  `rsc6^(-1/3)` (twice) and `rsc6^(-1/2)`.
  """
  inv_rsc6 = 1 / (r2 ** 3 + sigma6_factor * sigma ** 6)
  inv_rsc2 = jnp.cbrt(inv_rsc6)
  inv_rsc3 = jnp.sqrt(inv_rsc6)
  r5 = jnp.sqrt(r2) ** 5
  ff = (coulomb_const * qi * qj) * inv_rsc2 * r5 * inv_rsc2 * inv_rsc3
  return ff * jnp.sqrt(1 / r2)


def soft_core_potential(r2: Array,
                        coulomb_const: Array,
                        qi: Array,
                        qj: Array,
                        sigma: Array,
                        sigma6_factor: Array) -> Array:
  """.. _soft-core-pot:

  Soft-core Coulomb energy, `C qi qj / (r^6 + alpha sigma^6 lambda^p)^(1/6)`.

  Reduces to the plain Coulomb energy when `alpha` or `lambda` is zero and is
  finite at zero separation otherwise.
  """
  inv_rsc6 = 1 / (r2 ** 3 + sigma6_factor * sigma ** 6)
  return (coulomb_const * qi * qj) * jnp.sqrt(jnp.cbrt(inv_rsc6))


@dataclasses.dataclass
class CoulombSoftCore:
  """The Coulomb interaction between two particles with a soft core.

  `sigma6_factor` is `alpha * lambda_ ** p`, derived from the leaves on every
  evaluation so that gradients reach `alpha`, `lambda_` and `p`. Build
  instances with `coulomb_soft_core(...)`.
  """
  cutoff: CutoffPolicy = dataclasses.static_field()
  alpha: Array
  lambda_: Array
  p: Array
  use_neighbors: bool = dataclasses.static_field()
  lorentz_mixing: bool = dataclasses.static_field()
  weight_special: Array
  coulomb_const: Array
  force_units: str = dataclasses.static_field()
  energy_units: str = dataclasses.static_field()

  @property
  def sigma6_factor(self) -> Array:
    return self.alpha * self.lambda_ ** self.p

  def mix_sigma(self, particle_i: Particle, particle_j: Particle) -> Array:
    if self.lorentz_mixing:
      return lorentz_sigma(particle_i.sigma, particle_j.sigma)
    return geometric_sigma(particle_i.sigma, particle_j.sigma)

  def _params(self, particle_i: Particle, particle_j: Particle):
    return dict(coulomb_const=self.coulomb_const,
                qi=particle_i.charge,
                qj=particle_j.charge,
                sigma=self.mix_sigma(particle_i, particle_j),
                sigma6_factor=self.sigma6_factor)

  def force(self, dr: Array, coord_i: Array, coord_j: Array,
            particle_i: Particle, particle_j: Particle,
            boundary: Boundary=None, special=False) -> Array:
    r2 = space.square_distance(dr)
    fn = partial(soft_core_force_divr, **self._params(particle_i, particle_j))
    f = cutoff_lib.force_divr_with_cutoff(fn, r2, self.cutoff)
    return f * dr * _special_weight(special, self.weight_special)

  def potential_energy(self, dr: Array, coord_i: Array, coord_j: Array,
                       particle_i: Particle, particle_j: Particle,
                       boundary: Boundary=None, special=False) -> Array:
    r2 = space.square_distance(dr)
    fn = partial(soft_core_potential, **self._params(particle_i, particle_j))
    pe = cutoff_lib.potential_with_cutoff(fn, r2, self.cutoff)
    return pe * _special_weight(special, self.weight_special)


def coulomb_soft_core(cutoff: Optional[CutoffPolicy]=None,
                      alpha: Array=1.0,
                      lambda_: Array=0.0,
                      p: Array=2.0,
                      use_neighbors: bool=False,
                      lorentz_mixing: bool=True,
                      weight_special: Array=1.0,
                      coulomb_const: Optional[Array]=None,
                      force_units: str=units.DEFAULT_FORCE_UNITS,
                      energy_units: str=units.DEFAULT_ENERGY_UNITS
                      ) -> CoulombSoftCore:
  """Convenience constructor for :ref:`soft-core Coulomb <soft-core-pot>`.

  Args:
    cutoff: Cutoff policy. Defaults to `NoCutoff()`.
    alpha: Soft-core strength.
    lambda_: Coupling parameter; 0 recovers plain Coulomb. Conventionally in
      [0, 1].
    p: Softness exponent applied to `lambda_`.
    use_neighbors: Whether the driver should restrict evaluation to a
      neighbor list.
    lorentz_mixing: Arithmetic mean of the particle sigmas if True, geometric
      mean otherwise.
    weight_special: Factor applied to special (e.g. 1-4) pairs.
    coulomb_const: 1 / (4 pi eps0) in the units of `force_units`. Defaults
      to `COULOMB_CONST` re-expressed in those units.
    force_units: Unit tag of returned forces.
    energy_units: Unit tag of returned energies.
  Returns:
    A `CoulombSoftCore` parameter set.
  """
  units.check_units(force_units, energy_units)
  if coulomb_const is None:
    coulomb_const = units.coulomb_constant_in(COULOMB_CONST, force_units)
  if cutoff is None:
    cutoff = cutoff_lib.NoCutoff()
  if isinstance(lambda_, (int, float)) and not 0 <= lambda_ <= 1:
    logging.warning('Soft-core lambda_=%s lies outside [0, 1].', lambda_)
  return CoulombSoftCore(cutoff=cutoff,
                         alpha=alpha,
                         lambda_=lambda_,
                         p=p,
                         use_neighbors=use_neighbors,
                         lorentz_mixing=lorentz_mixing,
                         weight_special=weight_special,
                         coulomb_const=coulomb_const,
                         force_units=force_units,
                         energy_units=energy_units)


# Reaction field Coulomb.


def reaction_field_constants(dist_cutoff: Array,
                             solvent_dielectric: Array):
  """Returns `(krf, crf)` for a cutoff sphere embedded in a dielectric."""
  krf = (1 / dist_cutoff ** 3) * ((solvent_dielectric - 1) /
                                  (2 * solvent_dielectric + 1))
  crf = (1 / dist_cutoff) * ((3 * solvent_dielectric) /
                             (2 * solvent_dielectric + 1))
  return krf, crf


@dataclasses.dataclass
class CoulombReactionField:
  """Coulomb interaction with the reaction field approximation.

  Pairs further apart than `dist_cutoff` do not interact. Inside the cutoff
  the surrounding medium is treated as a continuum of relative permittivity
  `solvent_dielectric`. Special pairs get the bare Coulomb form since the
  reaction field must not be counted for pairs handled by bonded terms.

  Build instances with `coulomb_reaction_field(...)`.
  """
  dist_cutoff: Array
  solvent_dielectric: Array
  use_neighbors: bool = dataclasses.static_field()
  weight_special: Array
  coulomb_const: Array
  force_units: str = dataclasses.static_field()
  energy_units: str = dataclasses.static_field()

  def _constants(self, special):
    # dist_cutoff and solvent_dielectric are leaves; derive krf, crf here.
    krf, crf = reaction_field_constants(self.dist_cutoff,
                                        self.solvent_dielectric)
    return _unless_special(special, krf), _unless_special(special, crf)

  def _beyond_cutoff(self, r2: Array) -> Array:
    return r2 > self.dist_cutoff ** 2

  def force(self, dr: Array, coord_i: Array, coord_j: Array,
            particle_i: Particle, particle_j: Particle,
            boundary: Boundary=None, special=False) -> Array:
    r2 = space.square_distance(dr)
    r = jnp.sqrt(r2)
    krf, _ = self._constants(special)
    qi, qj = particle_i.charge, particle_j.charge

    f = (self.coulomb_const * qi * qj) * (1 / r - 2 * krf * r2) * (1 / r2)
    f = f * _special_weight(special, self.weight_special)
    f = jnp.where(self._beyond_cutoff(r2), jnp.zeros_like(f), f)
    return f * dr

  def potential_energy(self, dr: Array, coord_i: Array, coord_j: Array,
                       particle_i: Particle, particle_j: Particle,
                       boundary: Boundary=None, special=False) -> Array:
    r2 = space.square_distance(dr)
    r = jnp.sqrt(r2)
    krf, crf = self._constants(special)
    qi, qj = particle_i.charge, particle_j.charge

    pe = (self.coulomb_const * qi * qj) * (1 / r + krf * r2 - crf)
    pe = pe * _special_weight(special, self.weight_special)
    return jnp.where(self._beyond_cutoff(r2), jnp.zeros_like(pe), pe)


def coulomb_reaction_field(dist_cutoff: Array,
                           solvent_dielectric: Array=SOLVENT_DIELECTRIC,
                           use_neighbors: bool=False,
                           weight_special: Array=1.0,
                           coulomb_const: Optional[Array]=None,
                           force_units: str=units.DEFAULT_FORCE_UNITS,
                           energy_units: str=units.DEFAULT_ENERGY_UNITS
                           ) -> CoulombReactionField:
  """Convenience constructor for reaction field Coulomb interactions.

  Args:
    dist_cutoff: Interaction range, also the radius of the reaction field
      cavity.
    solvent_dielectric: Relative permittivity of the medium beyond the cutoff.
    use_neighbors: Whether the driver should restrict evaluation to a
      neighbor list.
    weight_special: Factor applied to special (e.g. 1-4) pairs.
    coulomb_const: 1 / (4 pi eps0) in the units of `force_units`. Defaults
      to `COULOMB_CONST` re-expressed in those units.
    force_units: Unit tag of returned forces.
    energy_units: Unit tag of returned energies.
  Returns:
    A `CoulombReactionField` parameter set.
  """
  units.check_units(force_units, energy_units)
  if coulomb_const is None:
    coulomb_const = units.coulomb_constant_in(COULOMB_CONST, force_units)
  return CoulombReactionField(dist_cutoff=dist_cutoff,
                              solvent_dielectric=solvent_dielectric,
                              use_neighbors=use_neighbors,
                              weight_special=weight_special,
                              coulomb_const=coulomb_const,
                              force_units=force_units,
                              energy_units=energy_units)


# Dispatch over the closed set of interactions.


INTERACTIONS = (Coulomb, CoulombSoftCore, CoulombReactionField)


def _check_interaction(inter):
  if not isinstance(inter, INTERACTIONS):
    raise TypeError(f'Expected a Coulomb interaction, found {type(inter)}.')


def force(inter, dr: Array, coord_i: Array, coord_j: Array,
          particle_i: Particle, particle_j: Particle,
          boundary: Boundary=None, special=False) -> Array:
  """Force on particle j from particle i under `inter`."""
  _check_interaction(inter)
  return inter.force(dr, coord_i, coord_j, particle_i, particle_j, boundary,
                     special)


def potential_energy(inter, dr: Array, coord_i: Array, coord_j: Array,
                     particle_i: Particle, particle_j: Particle,
                     boundary: Boundary=None, special=False) -> Array:
  """Potential energy of the pair (i, j) under `inter`."""
  _check_interaction(inter)
  return inter.potential_energy(dr, coord_i, coord_j, particle_i, particle_j,
                                boundary, special)


def use_neighbors(inter) -> bool:
  _check_interaction(inter)
  return inter.use_neighbors


# Algebra of parameter sets.


def _zero(x):
  return jnp.zeros_like(x)


@singledispatch
def identity_element(inter):
  """Additive identity of `inter`'s model.

  Numeric fields are zeroed and neighbor-list usage is disabled. The cutoff
  policy, mixing rule and unit tags are kept, so that
  `combine(inter, identity_element(inter))` equals `inter`.
  """
  raise TypeError(f'Expected a Coulomb interaction, found {type(inter)}.')


@identity_element.register
def _(inter: Coulomb) -> Coulomb:
  return inter.set(use_neighbors=False,
                   weight_special=_zero(inter.weight_special),
                   coulomb_const=_zero(inter.coulomb_const))


@identity_element.register
def _(inter: CoulombSoftCore) -> CoulombSoftCore:
  return coulomb_soft_core(cutoff=inter.cutoff,
                           alpha=_zero(inter.alpha),
                           lambda_=_zero(inter.lambda_),
                           p=_zero(inter.p),
                           use_neighbors=False,
                           lorentz_mixing=inter.lorentz_mixing,
                           weight_special=_zero(inter.weight_special),
                           coulomb_const=_zero(inter.coulomb_const),
                           force_units=inter.force_units,
                           energy_units=inter.energy_units)


@identity_element.register
def _(inter: CoulombReactionField) -> CoulombReactionField:
  return inter.set(dist_cutoff=_zero(inter.dist_cutoff),
                   solvent_dielectric=_zero(inter.solvent_dielectric),
                   use_neighbors=False,
                   weight_special=_zero(inter.weight_special),
                   coulomb_const=_zero(inter.coulomb_const))


def _warn_on_static_mismatch(a, b):
  for name in dataclasses.static_field_names(a):
    if name == 'use_neighbors':
      continue
    if getattr(a, name) != getattr(b, name):
      logging.warning('Combining %s interactions with different %s (%s vs %s);'
                      ' keeping the first.', type(a).__name__, name,
                      getattr(a, name), getattr(b, name))


def combine(a, b):
  """Sums the numeric fields of two parameter sets of the same model.

  Static configuration (cutoff policy, neighbor-list usage, mixing rule, unit
  tags) is taken from `a`. For soft-core interactions `sigma6_factor` follows
  from the summed `alpha`, `lambda_` and `p`.

  Raises:
    TypeError: if `a` and `b` are different interaction models.
  """
  _check_interaction(a)
  if type(a) is not type(b):
    raise TypeError(f'Cannot combine {type(a).__name__} with '
                    f'{type(b).__name__}.')
  _warn_on_static_mismatch(a, b)
  return _combine(a, b)


@singledispatch
def _combine(a, b):
  raise TypeError(f'Expected a Coulomb interaction, found {type(a)}.')


@_combine.register
def _(a: Coulomb, b: Coulomb) -> Coulomb:
  return a.set(weight_special=a.weight_special + b.weight_special,
               coulomb_const=a.coulomb_const + b.coulomb_const)


@_combine.register
def _(a: CoulombSoftCore, b: CoulombSoftCore) -> CoulombSoftCore:
  return coulomb_soft_core(cutoff=a.cutoff,
                           alpha=a.alpha + b.alpha,
                           lambda_=a.lambda_ + b.lambda_,
                           p=a.p + b.p,
                           use_neighbors=a.use_neighbors,
                           lorentz_mixing=a.lorentz_mixing,
                           weight_special=a.weight_special + b.weight_special,
                           coulomb_const=a.coulomb_const + b.coulomb_const,
                           force_units=a.force_units,
                           energy_units=a.energy_units)


@_combine.register
def _(a: CoulombReactionField, b: CoulombReactionField
      ) -> CoulombReactionField:
  return a.set(dist_cutoff=a.dist_cutoff + b.dist_cutoff,
               solvent_dielectric=a.solvent_dielectric + b.solvent_dielectric,
               weight_special=a.weight_special + b.weight_special,
               coulomb_const=a.coulomb_const + b.coulomb_const)
