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

from jax_coulomb import coulomb
from jax_coulomb import cutoff
from jax_coulomb import dataclasses
from jax_coulomb import smap
from jax_coulomb import space
from jax_coulomb import units
from jax_coulomb import util

__version__ = '0.1.0'
