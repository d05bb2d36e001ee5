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

"""Tests for jax_coulomb.smap and jax_coulomb.space."""

import itertools

from absl.testing import absltest
from absl.testing import parameterized

import jax
from jax import random
from jax import grad, jit
import jax.numpy as jnp

jax.config.update('jax_enable_x64', True)

from jax_coulomb import coulomb
from jax_coulomb import smap
from jax_coulomb import space
from jax_coulomb import test_util
from jax_coulomb.util import f64, i32

PARTICLE_COUNT = 6
MODELS = ['coulomb', 'soft_core', 'reaction_field']

test_util.update_test_tolerance(2e-5, 1e-10)


def make_interaction(model):
  if model == 'coulomb':
    return coulomb.coulomb(weight_special=0.5)
  if model == 'soft_core':
    return coulomb.coulomb_soft_core(alpha=0.5, lambda_=0.3,
                                     weight_special=0.5)
  return coulomb.coulomb_reaction_field(dist_cutoff=1.2, weight_special=0.5)


def make_system(key, box_size=2.0):
  pos_key, q_key, s_key = random.split(key, 3)
  # Jittered lattice so that no two particles overlap.
  lattice = jnp.array([[0., 0., 0.], [1., 0., 0.], [0., 1., 0.],
                       [0., 0., 1.], [1., 1., 0.], [1., 1., 1.]], f64)
  R = 0.25 + 0.8 * lattice + random.uniform(
      pos_key, lattice.shape, minval=-0.1, maxval=0.1, dtype=f64)
  R = jnp.mod(R, box_size)
  particles = coulomb.Particle(
      charge=random.uniform(q_key, (PARTICLE_COUNT,), minval=-1.0, maxval=1.0,
                            dtype=f64),
      sigma=random.uniform(s_key, (PARTICLE_COUNT,), minval=0.2, maxval=0.4,
                           dtype=f64))
  pairs = jnp.array(list(itertools.combinations(range(PARTICLE_COUNT), 2)),
                    i32)
  special = jnp.arange(len(pairs)) % 4 == 0
  return R, particles, pairs, special


class SpaceTest(test_util.JAXCoulombTestCase):

  def test_free_displacement(self):
    displacement = space.free()
    Ra = jnp.array([1.0, 2.0, 3.0], f64)
    Rb = jnp.array([0.5, -1.0, 3.0], f64)
    self.assertAllClose(displacement(Ra, Rb), jnp.array([0.5, 3.0, 0.0], f64))
    self.assertAllClose(space.square_distance(displacement(Ra, Rb)), f64(9.25))

  def test_periodic_displacement_is_minimum_image(self):
    displacement = space.periodic(f64(2.0))
    Ra = jnp.array([1.9, 0.1], f64)
    Rb = jnp.array([0.1, 1.9], f64)
    self.assertAllClose(displacement(Ra, Rb), jnp.array([-0.2, 0.2], f64))

  def test_distance_gradient_is_safe_at_zero(self):
    g = grad(lambda dR: space.distance(dR))(jnp.zeros((3,), f64))
    self.assertAllClose(g, jnp.zeros((3,), f64))

  def test_displacement_rejects_mismatched_shapes(self):
    with self.assertRaises(ValueError):
      space.pairwise_displacement(jnp.zeros((3,)), jnp.zeros((2,)))
    with self.assertRaises(ValueError):
      space.pairwise_displacement(jnp.zeros((2, 3)), jnp.zeros((2, 3)))


class SmapTest(test_util.JAXCoulombTestCase):

  @parameterized.named_parameters(test_util.cases_from_list(
      {
          'testcase_name': '_model={}_periodic={}'.format(model, periodic),
          'model': model,
          'periodic': periodic,
      } for model in MODELS for periodic in [False, True]))
  def test_pair_energy_is_sum_of_pairs(self, model, periodic):
    inter = make_interaction(model)
    displacement = space.periodic(2.0) if periodic else space.free()
    R, particles, pairs, special = make_system(random.PRNGKey(0))

    energy_fn = smap.pairs(inter, displacement)
    E = energy_fn(R, particles, pairs, special)

    E_exact = 0.0
    for (i, j), s in zip(pairs.tolist(), special.tolist()):
      dR = displacement(R[j], R[i])
      p_i = coulomb.Particle(charge=particles.charge[i],
                             sigma=particles.sigma[i])
      p_j = coulomb.Particle(charge=particles.charge[j],
                             sigma=particles.sigma[j])
      E_exact += inter.potential_energy(dR, R[i], R[j], p_i, p_j, None, s)
    self.assertAllClose(E, E_exact)

  @parameterized.named_parameters(test_util.cases_from_list(
      {
          'testcase_name': '_model={}'.format(model),
          'model': model,
      } for model in MODELS))
  def test_pair_forces_are_negative_energy_gradient(self, model):
    inter = make_interaction(model)
    displacement = space.free()
    R, particles, pairs, special = make_system(random.PRNGKey(1))

    energy_fn = smap.pairs(inter, displacement)
    force_fn = jit(smap.pair_forces(inter, displacement))

    F = force_fn(R, particles, pairs, special)
    self.assertEqual(F.shape, R.shape)
    self.assertAllClose(F, -grad(energy_fn)(R, particles, pairs, special))
    # Pair forces are equal and opposite.
    self.assertAllClose(jnp.sum(F, axis=0), jnp.zeros((3,), f64))

  def test_scalar_particle_properties_broadcast(self):
    inter = make_interaction('soft_core')
    R, particles, pairs, _ = make_system(random.PRNGKey(2))
    shared_sigma = coulomb.Particle(charge=particles.charge, sigma=f64(0.3))
    full_sigma = coulomb.Particle(charge=particles.charge,
                                  sigma=jnp.full((PARTICLE_COUNT,), 0.3, f64))
    energy_fn = smap.pairs(inter, space.free())
    self.assertAllClose(energy_fn(R, shared_sigma, pairs),
                        energy_fn(R, full_sigma, pairs))

  def test_no_special_flags_means_normal_pairs(self):
    inter = make_interaction('reaction_field')
    R, particles, pairs, _ = make_system(random.PRNGKey(3))
    energy_fn = smap.pairs(inter, space.free())
    normal = jnp.zeros((len(pairs),), bool)
    self.assertAllClose(energy_fn(R, particles, pairs),
                        energy_fn(R, particles, pairs, normal))


if __name__ == '__main__':
  absltest.main()
