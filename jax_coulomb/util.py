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

"""Defines utility functions."""

from typing import Iterable, Union, Optional

import jax.numpy as jnp
from jax import jit

from functools import partial

Array = jnp.ndarray

i32 = jnp.int32

f32 = jnp.float32
f64 = jnp.float64


@partial(jit, static_argnums=(1,))
def safe_mask(mask, fn, operand, placeholder=0):
  masked = jnp.where(mask, operand, 0)
  return jnp.where(mask, fn(masked), placeholder)


def high_precision_sum(
  X: Array,
  axis: Optional[Union[Iterable[int], int]] = None,
  keepdims: bool = False,
):
  """Sums over axes at 64-bit precision then casts back to original dtype."""
  if jnp.issubdtype(X.dtype, jnp.integer):
    dtyp = jnp.int64
  else:
    dtyp = jnp.float64

  return jnp.array(
    jnp.sum(X, axis=axis, dtype=dtyp, keepdims=keepdims), dtype=X.dtype
  )


def where_special(special, weight: Array) -> Array:
  """Multiplier applied to a pair result: `weight` for special pairs, else 1.

  `special` may be a python bool or a traced boolean array, so the selection
  works under `jit` and `vmap` over per-pair flags.
  """
  if isinstance(special, bool):
    return weight if special else 1
  return jnp.where(special, weight, jnp.ones_like(weight))
