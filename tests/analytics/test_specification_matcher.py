"""Tests for specification matching."""

import random

import pytest

from resource_recommender.analytics.specification import SpecificationMatcher
from resource_recommender.config.specifications import DEFAULT_SPECS
from resource_recommender.config.specifications import parse_specifications
from resource_recommender.errors import NoFeasibleSpecification
from resource_recommender.models.resource import ResourceDimension
from resource_recommender.models.resource import Specification

CPU = ResourceDimension.CPU
MEMORY = ResourceDimension.MEMORY
GIB = 1024**3
MIB = 1024**2


@pytest.fixture
def matcher():
    return SpecificationMatcher()


def test_smallest_dominating_spec(matcher):
    specs = [
        Specification(name="1c1g", cpu=1.0, memory=GIB),
        Specification(name="2c4g", cpu=2.0, memory=4 * GIB),
    ]
    match = matcher.match({CPU: 0.6, MEMORY: 500 * MIB}, specs)
    assert match.name == "1c1g"


def test_skips_specs_that_are_too_small(matcher):
    specs = parse_specifications("1c1g,1c2g,2c2g,2c4g")
    match = matcher.match({CPU: 1.5, MEMORY: 1.5 * GIB}, specs)
    assert match.name == "2c2g"


def test_empty_catalog(matcher):
    with pytest.raises(NoFeasibleSpecification):
        matcher.match({CPU: 0.1}, [])


def test_nothing_large_enough(matcher):
    specs = parse_specifications(DEFAULT_SPECS)
    with pytest.raises(NoFeasibleSpecification):
        matcher.match({CPU: 128.0, MEMORY: GIB}, specs)


def test_ties_keep_earliest_entry(matcher):
    specs = [
        Specification(name="first", cpu=2.0, memory=2 * GIB),
        Specification(name="second", cpu=2.0, memory=2 * GIB),
    ]
    assert matcher.match({CPU: 1.0, MEMORY: GIB}, specs).name == "first"


def test_absent_dimensions_do_not_constrain(matcher):
    specs = [
        Specification(name="no-memory", cpu=1.0),
        Specification(name="both", cpu=1.0, memory=GIB),
    ]
    assert matcher.match({CPU: 1.0}, specs).name == "no-memory"


def test_accelerator_dimensions(matcher):
    specs = [
        Specification(name="cpu-only", cpu=8.0, memory=32 * GIB),
        Specification(
            name="gpu",
            cpu=8.0,
            memory=32 * GIB,
            accelerator_compute=1.0,
            accelerator_memory=16 * GIB,
        ),
    ]
    raw = {CPU: 4.0, MEMORY: 8 * GIB, ResourceDimension.ACCELERATOR_COMPUTE: 0.5}
    assert matcher.match(raw, specs).name == "gpu"


def test_match_always_dominates(matcher):
    rng = random.Random(42)
    specs = parse_specifications(DEFAULT_SPECS)
    for _ in range(200):
        raw = {CPU: rng.uniform(0, 80), MEMORY: rng.uniform(0, 300) * GIB}
        try:
            match = matcher.match(raw, specs)
        except NoFeasibleSpecification:
            assert not any(
                spec.cpu >= raw[CPU] and spec.memory >= raw[MEMORY] for spec in specs
            )
            continue
        assert match.cpu >= raw[CPU]
        assert match.memory >= raw[MEMORY]
