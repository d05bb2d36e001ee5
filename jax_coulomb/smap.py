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

"""Code to transform interactions on a single pair to lists of pairs.

The pairs themselves, together with any per-pair special flags, come from
outside (a neighbor list, an exclusion table, ...). These functions only
gather positions and particle properties, vectorise the per-pair kernel
with `vmap` and reduce.
"""

from typing import Callable, Optional

from jax import vmap
from jax.tree_util import tree_map
import jax.numpy as jnp

from jax_coulomb import space, util
from jax_coulomb.coulomb import Particle

high_precision_sum = util.high_precision_sum

# Typing

Array = util.Array
DisplacementFn = space.DisplacementFn


def _gather(x: Array, idx: Array) -> Array:
  x = jnp.asarray(x)
  if x.ndim == 0:
    return jnp.broadcast_to(x, idx.shape)
  return x[idx]


def _pair_inputs(displacement_fn: DisplacementFn,
                 R: Array,
                 particles: Particle,
                 pairs: Array,
                 special: Optional[Array]):
  i, j = pairs[:, 0], pairs[:, 1]
  Ri, Rj = R[i], R[j]
  # NOTE: interactions expect the displacement from i to j.
  dR = vmap(displacement_fn)(Rj, Ri)
  particle_i = tree_map(lambda x: _gather(x, i), particles)
  particle_j = tree_map(lambda x: _gather(x, j), particles)
  if special is None:
    special = jnp.zeros(i.shape, dtype=bool)
  return dR, Ri, Rj, particle_i, particle_j, special


def pairs(interaction, displacement_fn: DisplacementFn
          ) -> Callable[..., Array]:
  """Promotes a pairwise interaction to the total energy of a list of pairs.

  Args:
    interaction: Any of the Coulomb parameter sets.
    displacement_fn: Displacement function of the space, see `space.free`
      and `space.periodic`.

  Returns:
    A function `energy_fn(R, particles, pairs, special=None, boundary=None)`
    where `R` has shape `[n, spatial_dim]`, `particles` is a `Particle` whose
    fields have shape `[n]` (or are scalars), `pairs` is an integer array of
    shape `[n_pairs, 2]` listing each pair once and `special` is an optional
    boolean array of shape `[n_pairs]`.
  """
  def energy_fn(R: Array,
                particles: Particle,
                pairs: Array,
                special: Optional[Array]=None,
                boundary=None) -> Array:
    dR, Ri, Rj, p_i, p_j, special = _pair_inputs(
        displacement_fn, R, particles, pairs, special)
    pe = vmap(interaction.potential_energy, (0, 0, 0, 0, 0, None, 0))(
        dR, Ri, Rj, p_i, p_j, boundary, special)
    return high_precision_sum(pe)
  return energy_fn


def pair_forces(interaction, displacement_fn: DisplacementFn
                ) -> Callable[..., Array]:
  """Promotes a pairwise interaction to per-particle forces.

  Each pair contributes its force to particle j and the opposite force to
  particle i. Arguments of the returned function are as in `pairs`; it
  returns an array with the shape of `R`.
  """
  def force_fn(R: Array,
               particles: Particle,
               pairs: Array,
               special: Optional[Array]=None,
               boundary=None) -> Array:
    dR, Ri, Rj, p_i, p_j, special = _pair_inputs(
        displacement_fn, R, particles, pairs, special)
    f = vmap(interaction.force, (0, 0, 0, 0, 0, None, 0))(
        dR, Ri, Rj, p_i, p_j, boundary, special)
    F = jnp.zeros_like(R, dtype=f.dtype)
    F = F.at[pairs[:, 1]].add(f)
    return F.at[pairs[:, 0]].add(-f)
  return force_fn
