import copy
import json
from pathlib import Path

import pytest

from backend.campusbot.data_store import InMemoryDataStore

SAMPLE_PATH = Path(__file__).resolve().parent.parent / "data" / "sample_campus.json"


@pytest.fixture(autouse=True)
def _log_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("CAMPUS_VERBOSE", raising=False)


@pytest.fixture(scope="session")
def _sample():
    with open(SAMPLE_PATH, "r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def sample_data(_sample):
    data = copy.deepcopy(_sample)
    for category, records in data.items():
        for i, record in enumerate(records):
            record["id"] = f"{category}-{i}"
    return data


@pytest.fixture
def store(sample_data):
    return InMemoryDataStore(seed=sample_data)


@pytest.fixture
def clubs(sample_data):
    return sample_data["clubs"]


@pytest.fixture
def events(sample_data):
    return sample_data["events"]


@pytest.fixture
def canteen_items(sample_data):
    return sample_data["canteen_items"]
