from resource_recommender import recommend_workloads
from resource_recommender.models.resource import ResourceDimension

# --- Example 1: Recommendations from exported samples ---
try:
    print("--- Computing recommendations from parquet samples ---")
    results = recommend_workloads(
        samples_location="./data/samples",  # Replace with your samples dataset
        oom_location="./data/oom_events",
        overrides={"specification": "true"},
    )

    print("\n--- Recommendations ---")
    for workload, recommendation in results.items():
        print(f"Workload: {workload}")
        for dimension in ResourceDimension:
            print(f"  {dimension.value}: {recommendation.quantity(dimension)}")
        print(f"  Specification: {recommendation.specification}")

except Exception as e:
    print(f"An error occurred: {e}")
