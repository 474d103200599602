"""
Pytest configuration and shared fixtures

Raw payloads shaped like GET /api/compliance responses.
"""

import pytest


@pytest.fixture
def single_app_raw():
    """One app, one region: one compliant and one non-compliant server"""
    return {
        "app_name": "svcA",
        "current_week": 10,
        "current_year": 2024,
        "regions": {
            "us-east": {
                "total_servers": 2,
                "compliant": 1,
                "non_compliant": 1,
                "good_servers": [
                    {"name": "s1", "image_name": "img-2024w10", "image_id": "i-1", "image_year": 2024, "image_week": 10}
                ],
                "bad_servers": [
                    {"name": "s2", "image_name": "img-2023w40", "image_id": "i-2", "image_year": 2023, "image_week": 40, "reason": "Stale"}
                ],
            }
        },
    }


@pytest.fixture
def multi_app_raw():
    """Two apps; svcB has a failed region next to a healthy one"""
    return {
        "current_week": 10,
        "current_year": 2024,
        "timestamp": "2024-03-05T10:15:00",
        "apps": {
            "svcA": {
                "regions": {
                    "us-east": {
                        "total_servers": 3,
                        "compliant": 2,
                        "non_compliant": 1,
                        "good_servers": [
                            {"name": "a-web-1", "image_name": "web-2024w10", "image_id": "i-a1", "image_year": 2024, "image_week": 10},
                            {"name": "a-web-2", "image_name": "web-2024w10", "image_id": "i-a2", "image_year": 2024, "image_week": 10},
                        ],
                        "bad_servers": [
                            {"name": "a-db-1", "image_name": "db-2024w02", "image_id": "i-a3", "image_year": 2024, "image_week": 2, "reason": "Old build"},
                        ],
                    },
                    "eu-west": {
                        "total_servers": 1,
                        "compliant": 0,
                        "non_compliant": 1,
                        "good_servers": [],
                        "bad_servers": [
                            {"name": "a-eu-1", "image_name": "custom-image", "image_id": "i-a4"},
                        ],
                    },
                }
            },
            "svcB": {
                "regions": {
                    "us-east": {
                        "total_servers": 2,
                        "compliant": 2,
                        "non_compliant": 0,
                        "good_servers": [
                            {"name": "b-api-1", "image_name": "API-2024W10", "image_id": "i-b1", "image_year": 2024, "image_week": 10},
                            {"name": "b-api-2", "image_name": "api-2024w10", "image_id": "i-b2", "image_year": 2024, "image_week": 10},
                        ],
                        "bad_servers": [],
                    },
                    "ap-south": {"error": "timeout"},
                }
            },
        },
    }
