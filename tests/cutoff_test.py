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

"""Tests for jax_coulomb.cutoff."""

from absl.testing import absltest
from absl.testing import parameterized

import jax
from jax import random
import jax.numpy as jnp

jax.config.update('jax_enable_x64', True)

from jax_coulomb import cutoff
from jax_coulomb import test_util
from jax_coulomb.util import f32, f64

POSITION_DTYPE = [f32, f64]


class CutoffTest(test_util.JAXCoulombTestCase):

  @parameterized.named_parameters(test_util.cases_from_list(
      {
          'testcase_name': '_dtype={}'.format(dtype.__name__),
          'dtype': dtype
      } for dtype in POSITION_DTYPE))
  def test_no_cutoff(self, dtype):
    r2 = random.uniform(random.PRNGKey(0), (10,), minval=0.01, maxval=100.0,
                        dtype=dtype)
    policy = cutoff.NoCutoff()
    self.assertAllClose(policy.force_scale(r2), jnp.ones_like(r2))
    self.assertAllClose(policy.energy_scale(r2), jnp.ones_like(r2))

  @parameterized.named_parameters(test_util.cases_from_list(
      {
          'testcase_name': '_dtype={}'.format(dtype.__name__),
          'dtype': dtype
      } for dtype in POSITION_DTYPE))
  def test_distance_cutoff(self, dtype):
    policy = cutoff.DistanceCutoff(1.5)
    self.assertEqual(policy.sqdist_cutoff, 2.25)
    r2 = jnp.array([0.5, 2.0, 2.25, 2.3, 10.0], dtype)
    expected = jnp.array([1.0, 1.0, 1.0, 0.0, 0.0], dtype)
    self.assertAllClose(policy.force_scale(r2), expected)
    self.assertAllClose(policy.energy_scale(r2), expected)

  def test_with_cutoff_helpers(self):
    policy = cutoff.DistanceCutoff(1.0)
    fn = lambda r2: 3.0 / r2
    self.assertAllClose(
        cutoff.force_divr_with_cutoff(fn, f64(0.25), policy), f64(12.0))
    self.assertAllClose(
        cutoff.potential_with_cutoff(fn, f64(4.0), policy), f64(0.0))
    self.assertAllClose(
        cutoff.potential_with_cutoff(fn, f64(4.0), cutoff.NoCutoff()),
        f64(0.75))

  def test_policies_are_hashable(self):
    self.assertEqual(hash(cutoff.DistanceCutoff(1.0)),
                     hash(cutoff.DistanceCutoff(1.0)))
    self.assertNotEqual(cutoff.DistanceCutoff(1.0), cutoff.DistanceCutoff(2.0))
    self.assertEqual(cutoff.NoCutoff(), cutoff.NoCutoff())


if __name__ == '__main__':
  absltest.main()
