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

"""Immutable dataclasses that can be passed through jax transformations.

Interaction parameter sets and particle records are frozen dataclasses
registered as pytrees. Numeric fields are pytree leaves, so `jax.grad` can
differentiate an energy with respect to e.g. `coulomb_const` or `lambda_`.
Fields declared with `static_field()` (cutoff policies, unit tags, boolean
switches) are treated as metadata: they are hashed into the treedef and are
never traced.
"""

import dataclasses
from dataclasses import Field as _Field
from dataclasses import field as _field
from dataclasses import fields as _fields
from dataclasses import is_dataclass as _is_dataclass
from dataclasses import replace as _replace
from typing import Any, Optional, Tuple, TypeVar

import jax

__all__ = (
    'dataclass',
    'static_field',
    'is_static',
    'static_field_names',
    'replace',
    'is_dataclass',
    'fields',
    'field',
)


T = TypeVar('T', bound=type)


def dataclass(clz: T) -> T:
  """Create a frozen class which can be passed to functional transformations.

  Args:
    clz: the class that will be transformed by the decorator.
  Returns:
    The new class. Instances gain a `set(**kwargs)` method returning a copy
    with the given fields replaced.
  """
  data_clz = dataclasses.dataclass(frozen=True)(clz)
  registered_clz = jax.tree_util.register_dataclass(data_clz)

  def _set(self, **kwargs):
    return _replace(self, **kwargs)

  setattr(registered_clz, 'set', _set)
  return registered_clz


def static_field(*,
                 metadata: Optional[dict] = None,
                 **field_kwargs: Any) -> _Field:
  """Create a field that is treated as static (non-pytree) by JAX."""
  combined_metadata = dict(metadata or {})
  combined_metadata['static'] = True
  combined_metadata['pytree_node'] = False
  return _field(metadata=combined_metadata, **field_kwargs)


def is_static(f: _Field) -> bool:
  return f.metadata.get('static', False)


def static_field_names(dc: Any) -> Tuple[str, ...]:
  """Names of the fields of `dc` that are static metadata."""
  return tuple(f.name for f in _fields(dc) if is_static(f))


replace = _replace
is_dataclass = _is_dataclass
fields = _fields
field = _field
