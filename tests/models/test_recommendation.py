"""Tests for the resource and recommendation data models."""

from datetime import datetime
from datetime import timezone

import pytest

from resource_recommender.models.recommendation import Recommendation
from resource_recommender.models.resource import ResourceDimension
from resource_recommender.models.resource import Specification

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_dimension_field_names():
    assert ResourceDimension.CPU.field_name == "cpu"
    assert ResourceDimension.ACCELERATOR_MEMORY.field_name == "accelerator_memory"
    assert ResourceDimension("accelerator-compute") is ResourceDimension.ACCELERATOR_COMPUTE


def test_specification_from_camel_case_dict():
    spec = Specification.from_dict(
        {"name": "gpu", "cpu": "8", "memory": "32Gi", "acceleratorCompute": 1}
    )
    assert spec.quantity(ResourceDimension.CPU) == 8.0
    assert spec.quantity(ResourceDimension.MEMORY) == 32 * 1024**3
    assert spec.quantity(ResourceDimension.ACCELERATOR_COMPUTE) == 1.0
    assert spec.quantity(ResourceDimension.ACCELERATOR_MEMORY) == 0.0


def test_specification_is_immutable():
    spec = Specification(name="small", cpu=1.0)
    with pytest.raises(AttributeError):
        spec.cpu = 2.0


def test_specification_to_dict():
    spec = Specification(name="small", cpu=1.0, memory=2.0)
    assert spec.to_dict() == {
        "name": "small",
        "cpu": 1.0,
        "memory": 2.0,
        "accelerator_compute": 0.0,
        "accelerator_memory": 0.0,
    }


def test_recommendation_resources_only_lists_present_dimensions():
    recommendation = Recommendation(workload="web", evaluated_at=T0, cpu=0.5)
    recommendation.set_quantity(ResourceDimension.MEMORY, 1024.0)
    recommendation.skipped["accelerator-compute"] = "no samples"

    assert recommendation.resources() == {
        ResourceDimension.CPU: 0.5,
        ResourceDimension.MEMORY: 1024.0,
    }
    assert recommendation.quantity(ResourceDimension.ACCELERATOR_COMPUTE) is None


def test_recommendation_zero_is_a_valid_quantity():
    recommendation = Recommendation(workload="idle", evaluated_at=T0, cpu=0.0)
    assert recommendation.resources() == {ResourceDimension.CPU: 0.0}


def test_recommendation_to_dict():
    recommendation = Recommendation(
        workload="web", evaluated_at=T0, cpu=1.0, specification="1c2g"
    )
    data = recommendation.to_dict()
    assert data["workload"] == "web"
    assert data["cpu"] == 1.0
    assert data["memory"] is None
    assert data["specification"] == "1c2g"
    assert data["skipped"] == {}
