"""Pytest fixtures shared by the archviews tests."""

import json

import pytest


@pytest.fixture
def design():
    """Sample workspace document: a shop, its containers, one payment provider."""
    return {
        "name": "Shop",
        "description": "Online shop",
        "model": {
            "people": [
                {
                    "name": "Customer",
                    "uses": [
                        {"destination": "Shop", "description": "Buys from"},
                        {"destination": "Shop/Web", "description": "Browses"},
                    ],
                },
            ],
            "softwareSystems": [
                {
                    "name": "Shop",
                    "containers": [
                        {
                            "name": "Web",
                            "technology": "Python",
                            "uses": [
                                {"destination": "Database", "description": "Reads"},
                                {"destination": "Payments", "description": "Charges"},
                            ],
                        },
                        {"name": "Database", "tags": "Storage"},
                    ],
                },
                {"name": "Payments", "tags": ["External"]},
            ],
            "deploymentNodes": [
                {
                    "name": "Server",
                    "environment": "Live",
                    "containerInstances": [{"container": "Shop/Web"}],
                    "children": [
                        {"name": "DB Host", "containerInstances": [{"container": "Shop/Database"}]},
                    ],
                },
            ],
        },
        "views": [
            {"key": "landscape", "kind": "SystemLandscape", "addAll": True},
            {
                "key": "containers",
                "kind": "Container",
                "softwareSystem": "Shop",
                "add": [{"element": "Web", "x": 100, "y": 200}],
                "addAll": True,
            },
            {
                "key": "flow",
                "kind": "Dynamic",
                "softwareSystem": "Shop",
                "links": [
                    {"source": "Customer", "destination": "Web"},
                    {"source": "Web", "destination": "Database"},
                ],
                "animationSteps": [["Customer"], ["Web"], ["Database"]],
            },
            {
                "key": "live",
                "kind": "Deployment",
                "softwareSystem": "Shop",
                "environment": "Live",
                "addAll": True,
            },
        ],
        "filteredViews": [
            {"key": "internal", "baseKey": "landscape", "mode": "Exclude", "tags": ["External"]},
        ],
    }


@pytest.fixture
def design_file(tmp_path, design):
    """The sample document written to a JSON file."""
    path = tmp_path / "design.json"
    path.write_text(json.dumps(design, indent=2))
    return path
