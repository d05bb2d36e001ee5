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

"""Cutoff policies consumed by pairwise interactions.

A cutoff policy exposes two pure functions of the squared separation,
`force_scale(r2)` and `energy_scale(r2)`, returning dimensionless multipliers
for the unscaled force and energy. Interactions call
`force_divr_with_cutoff` / `potential_with_cutoff` and never look at the
shape of the policy.

Policies are immutable and hashable so that they can be stored as static
fields of an interaction.
"""

from typing import Callable

import jax.numpy as jnp

from jax_coulomb import dataclasses
from jax_coulomb import util

Array = util.Array


@dataclasses.dataclass
class NoCutoff:
  """Full interaction at every separation."""

  def force_scale(self, r2: Array) -> Array:
    return jnp.ones_like(r2)

  def energy_scale(self, r2: Array) -> Array:
    return jnp.ones_like(r2)


@dataclasses.dataclass
class DistanceCutoff:
  """Hard truncation of both force and energy beyond `dist_cutoff`.

  The interaction is not shifted, so the energy jumps to zero at the cutoff.
  """
  dist_cutoff: float = dataclasses.static_field()

  @property
  def sqdist_cutoff(self) -> float:
    return self.dist_cutoff ** 2

  def _inside(self, r2: Array) -> Array:
    return jnp.where(r2 <= self.sqdist_cutoff,
                     jnp.ones_like(r2),
                     jnp.zeros_like(r2))

  def force_scale(self, r2: Array) -> Array:
    return self._inside(r2)

  def energy_scale(self, r2: Array) -> Array:
    return self._inside(r2)


def force_divr_with_cutoff(force_divr: Callable[[Array], Array],
                           r2: Array,
                           cutoff) -> Array:
  """Force divided by distance at `r2`, scaled by the cutoff policy."""
  return force_divr(r2) * cutoff.force_scale(r2)


def potential_with_cutoff(potential: Callable[[Array], Array],
                          r2: Array,
                          cutoff) -> Array:
  """Potential energy at `r2`, scaled by the cutoff policy."""
  return potential(r2) * cutoff.energy_scale(r2)
