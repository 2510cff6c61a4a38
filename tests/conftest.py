"""
Shared test fixtures for the configurator runtime engine.
"""
import copy
import os

import pytest

from configurator import config as app_config
from configurator.model.catalog import Configuration


BODY_SCENARIO = {
    "chapters": [
        {
            "id": "body",
            "focus": "overview",
            "kicker": "01",
            "title": "Body",
            "description": "Paint and wheels.",
            "groups": [
                {
                    "id": "paint",
                    "title": "Paint",
                    "helper": "",
                    "options": [
                        {"value": "silver-paint", "label": "Silver", "description": ""},
                        {"value": "red-paint", "label": "Red", "description": ""},
                    ],
                },
                {
                    "id": "wheels",
                    "title": "Wheels",
                    "helper": "",
                    "options": [
                        {"value": "small-wheels", "label": "18 inch", "description": ""},
                        {"value": "big-wheels", "label": "20 inch", "description": ""},
                    ],
                },
            ],
        }
    ],
    "pricingRules": {
        "red-paint": {"red-paint": 500},
        "big-wheels": {"big-wheels": 300, "red-paint": 400},
    },
    "scene": {
        "focusTargets": {
            "overview": {"radius": 5, "polarDeg": 60, "azimuthDeg": 30, "lookAt": [0, 0, 0]},
        },
        "model": {"src": "/models/car.glb", "position": [0, 0, 0]},
    },
}


MULTI_CHAPTER = {
    "chapters": [
        {
            "id": "exterior",
            "focus": "overview",
            "title": "Exterior",
            "visibility": {"Chassis": False},
            "groups": [
                {
                    "id": "roof",
                    "title": "Roof",
                    "options": [
                        {"value": "hard-top"},
                        {"value": "soft-top", "visibility": {"HardTop": False}},
                    ],
                },
            ],
        },
        {
            "id": "wheels",
            "focus": "wheels",
            "title": "Wheels",
            "groups": [
                {
                    "id": "rims",
                    "title": "Rims",
                    "options": [
                        {"value": "standard-rims"},
                        {"value": "sport-rims", "visibility": {"StandardRims": False, "Chassis": True}},
                    ],
                },
            ],
        },
        {
            "id": "interior",
            "focus": "interior",
            "title": "Interior",
            "visibility": {"Doors": False, "Seats": True},
            "groups": [
                {
                    "id": "trim",
                    "title": "Trim",
                    "options": [{"value": "cloth"}, {"value": "leather"}],
                },
            ],
        },
    ],
    "scene": {
        "focusTargets": {
            "overview": {"radius": 5, "polarDeg": 60, "azimuthDeg": 30, "lookAt": [0, 0, 0]},
            "wheels": {"radius": 2, "polarDeg": 90, "azimuthDeg": 0, "lookAt": [1, 0, 0]},
            "interior": {"radius": 1.5, "polarDeg": 45, "azimuthDeg": 180, "lookAt": [0, 1, 0]},
        },
    },
}


@pytest.fixture
def body_data():
    return copy.deepcopy(BODY_SCENARIO)


@pytest.fixture
def body_config(body_data):
    """Chapter 'Body' with the paint group ordered before the wheel group."""
    return Configuration.from_dict(body_data)


@pytest.fixture
def multi_config():
    """Three chapters with chapter- and option-level visibility maps."""
    return Configuration.from_dict(copy.deepcopy(MULTI_CHAPTER))


@pytest.fixture(scope="session")
def qapp():
    """Qt core application so QObject signals behave as in the host app."""
    from PySide6.QtCore import QCoreApplication
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def store(qapp, multi_config):
    from configurator.app.state import Store
    return Store(multi_config)


@pytest.fixture
def example_config_path():
    path = app_config.DEFAULT_CONFIG_PATH
    if not os.path.exists(path):
        pytest.skip(f"Bundled example configuration not found at {path}")
    return path


def assert_selection_invariant(configuration, selections):
    """Every group has a selection that is '' or one of its current options."""
    group_ids = set()
    for _, group in configuration.iter_groups():
        group_ids.add(group.id)
        value = selections.get(group.id)
        if group.options:
            assert value in group.option_values, f"{group.id} -> {value!r}"
        else:
            assert value == "", f"{group.id} -> {value!r}"
    assert set(selections) == group_ids
