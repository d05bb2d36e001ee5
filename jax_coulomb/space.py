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

"""Spaces in which pairwise interactions are evaluated.

A space is a displacement function `displacement_fn(Ra, Rb)` returning the
minimum-image vector `Ra - Rb`. Interactions take the displacement from
particle i to particle j, i.e. `displacement_fn(R[j], R[i])`, and only ever
read its squared norm and direction.

Spaces only describe geometry. The neighbor search that decides which pairs
are evaluated lives outside this package.
"""

from typing import Callable, Union

import jax.numpy as jnp

from jax_coulomb.util import Array
from jax_coulomb.util import f32
from jax_coulomb.util import safe_mask


# Types


DisplacementFn = Callable[[Array, Array], Array]

Box = Union[float, Array]


# Primitive Spatial Transforms


def pairwise_displacement(Ra: Array, Rb: Array) -> Array:
  """Compute the displacement between two positions.

  Args:
    Ra: Vector of positions; ndarray(shape=[spatial_dim]).
    Rb: Vector of positions; ndarray(shape=[spatial_dim]).

  Returns:
    Displacement vector; ndarray(shape=[spatial_dim]).
  """
  if len(Ra.shape) != 1:
    msg = (
      'Can only compute displacements between vectors. To compute '
      'displacements between sets of vectors use vmap.'
    )
    raise ValueError(msg)

  if Ra.shape != Rb.shape:
    msg = 'Can only compute displacement between vectors of equal dimension.'
    raise ValueError(msg)

  return Ra - Rb


def periodic_displacement(side: Box, dR: Array) -> Array:
  """Wraps displacement vectors into a hypercube.

  Args:
    side: Specification of hypercube size. Either,
      (a) float if all sides have equal length.
      (b) ndarray(spatial_dim) if sides have different lengths.
    dR: Matrix of displacements; ndarray(shape=[..., spatial_dim]).
  Returns:
    Matrix of wrapped displacements; ndarray(shape=[..., spatial_dim]).
  """
  return jnp.mod(dR + side * f32(0.5), side) - f32(0.5) * side


def square_distance(dR: Array) -> Array:
  """Computes square distances.

  Args:
    dR: Matrix of displacements; ndarray(shape=[..., spatial_dim]).
  Returns:
    Matrix of squared distances; ndarray(shape=[...]).
  """
  return jnp.sum(dR ** 2, axis=-1)


def distance(dR: Array) -> Array:
  """Computes distances, with a gradient that is safe at zero separation."""
  dr = square_distance(dR)
  return safe_mask(dr > 0, jnp.sqrt, dr)


# Spaces


def free() -> DisplacementFn:
  """Free boundary conditions."""
  def displacement_fn(Ra: Array, Rb: Array, **unused_kwargs) -> Array:
    return pairwise_displacement(Ra, Rb)
  return displacement_fn


def periodic(side: Box) -> DisplacementFn:
  """Periodic boundary conditions on a hypercube of sidelength side.

  Args:
    side: Either a float or an ndarray of shape [spatial_dimension] specifying
      the size of each side of the periodic box.
  Returns:
    A minimum-image displacement function.
  """
  def displacement_fn(Ra: Array, Rb: Array, **unused_kwargs) -> Array:
    return periodic_displacement(side, pairwise_displacement(Ra, Rb))
  return displacement_fn
